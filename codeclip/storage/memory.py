"""In-process storage backend. Records live only as long as the process."""

import asyncio
from dataclasses import replace
from datetime import datetime

from codeclip.errors import DuplicateKeyError
from codeclip.models.clipboard import ClipboardRecord
from codeclip.storage.base import ClipboardStorage


class MemoryStorage(ClipboardStorage):
    """Records keyed by id with secondary indexes for both codes.

    Mutations hold the lock only while the indexes change. Reads go straight
    to the dicts and always see either the old or the new record.
    """

    name = "memory"

    def __init__(self):
        self._records: dict[int, ClipboardRecord] = {}
        self._by_share_code: dict[str, int] = {}
        self._by_view_code: dict[str, int] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def close(self) -> None:
        self._records.clear()
        self._by_share_code.clear()
        self._by_view_code.clear()

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
        async with self._lock:
            if share_code in self._by_share_code:
                raise DuplicateKeyError("share_code")
            if view_code in self._by_view_code:
                raise DuplicateKeyError("view_code")

            # Ids only ever increase, so a deleted id is never handed out again
            record = ClipboardRecord(
                id=self._next_id,
                share_code=share_code,
                view_code=view_code,
                content=content,
                access_type=access_type,
                expiry_at=expiry_at,
                created_at=created_at,
                updated_at=created_at,
                last_edit_at=created_at,
            )
            self._next_id += 1

            self._records[record.id] = record
            self._by_share_code[share_code] = record.id
            self._by_view_code[view_code] = record.id

        return replace(record)

    async def get_by_id(self, clipboard_id: int) -> ClipboardRecord | None:
        record = self._records.get(clipboard_id)
        return replace(record) if record else None

    async def get_by_share_code(self, code: str) -> ClipboardRecord | None:
        clipboard_id = self._by_share_code.get(code)
        if clipboard_id is None:
            return None
        return await self.get_by_id(clipboard_id)

    async def get_by_view_code(self, code: str) -> ClipboardRecord | None:
        clipboard_id = self._by_view_code.get(code)
        if clipboard_id is None:
            return None
        return await self.get_by_id(clipboard_id)

    def _matching(self, clipboard_id: int, share_code: str) -> ClipboardRecord | None:
        record = self._records.get(clipboard_id)
        if record is None or record.share_code != share_code:
            return None
        return record

    async def update_content(
        self,
        clipboard_id: int,
        share_code: str,
        content: str,
        edited_at: datetime,
    ) -> bool:
        async with self._lock:
            record = self._matching(clipboard_id, share_code)
            if record is None:
                return False
            # Swap in a new object so unlocked readers never see a half update
            self._records[clipboard_id] = replace(
                record,
                content=content,
                updated_at=edited_at,
                last_edit_at=edited_at,
            )
        return True

    def _remove(self, record: ClipboardRecord) -> None:
        self._records.pop(record.id, None)
        self._by_share_code.pop(record.share_code, None)
        self._by_view_code.pop(record.view_code, None)

    async def delete(self, clipboard_id: int, share_code: str) -> bool:
        async with self._lock:
            record = self._matching(clipboard_id, share_code)
            if record is None:
                return False
            self._remove(record)
        return True

    async def delete_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [r for r in self._records.values() if r.is_expired(now)]
            for record in expired:
                self._remove(record)
        return len(expired)

    async def count(self, now: datetime) -> tuple[int, int]:
        records = list(self._records.values())
        return len(records), sum(1 for r in records if r.is_expired(now))
