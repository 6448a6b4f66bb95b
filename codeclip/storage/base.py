"""Abstract storage interface for clipboard records."""

from abc import ABC, abstractmethod
from datetime import datetime

from codeclip.models.clipboard import ClipboardRecord


class ClipboardStorage(ABC):
    """All storage backends implement this interface.

    Backends raise DuplicateKeyError when an inserted share or view code is
    already taken, and StorageError for any other fault. Update and delete
    match on id and share code together in a single atomic step.
    """

    name: str = ""

    async def open(self) -> None:
        """Acquire any resources the backend needs."""

    async def close(self) -> None:
        """Release resources acquired by open()."""

    @abstractmethod
    async def insert(
        self,
        *,
        share_code: str,
        view_code: str,
        content: str,
        access_type: str,
        expiry_at: datetime | None,
        created_at: datetime,
    ) -> ClipboardRecord:
        """Persist a new record and return it with its assigned id."""
        ...

    @abstractmethod
    async def get_by_id(self, clipboard_id: int) -> ClipboardRecord | None:
        ...

    @abstractmethod
    async def get_by_share_code(self, code: str) -> ClipboardRecord | None:
        ...

    @abstractmethod
    async def get_by_view_code(self, code: str) -> ClipboardRecord | None:
        ...

    @abstractmethod
    async def update_content(
        self,
        clipboard_id: int,
        share_code: str,
        content: str,
        edited_at: datetime,
    ) -> bool:
        """Replace content and refresh edit timestamps.

        Returns False if no record matches both id and share code.
        """
        ...

    @abstractmethod
    async def delete(self, clipboard_id: int, share_code: str) -> bool:
        """Remove the record matching both id and share code."""
        ...

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Remove every record with expiry_at <= now. Returns the count."""
        ...

    @abstractmethod
    async def count(self, now: datetime) -> tuple[int, int]:
        """Return (total records, records already past expiry)."""
        ...
