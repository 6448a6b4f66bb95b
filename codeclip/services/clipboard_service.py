"""Clipboard service: code-gated create, read, update and delete with expiry."""

import asyncio
import logging
import math
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from codeclip.config import settings
from codeclip.errors import (
    AccessDeniedError,
    CodeCollisionError,
    DuplicateKeyError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from codeclip.models.clipboard import (
    AccessType,
    ClipboardRecord,
    format_timestamp,
    utcnow,
)
from codeclip.services.codes import generate_share_code, generate_view_code
from codeclip.storage.base import ClipboardStorage
from codeclip.storage.registry import create_storage

logger = logging.getLogger(__name__)

# Smallest step between two successive edit timestamps
_TICK = timedelta(microseconds=1)


def _resolve_access_type(value: str | AccessType | None) -> AccessType:
    if value is None or value == "":
        return AccessType.EDIT
    try:
        return AccessType(value)
    except ValueError:
        allowed = ", ".join(a.value for a in AccessType)
        raise ValidationError(
            f"Invalid access type '{value}'. Must be one of: {allowed}"
        ) from None


def _parse_expiry_hours(value) -> float | None:
    """Return a positive number of hours, or None to use the default."""
    if value is None or isinstance(value, bool):
        return None
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid expiry hours '{value}'") from None
    if not math.isfinite(hours):
        raise ValidationError(f"Invalid expiry hours '{value}'")
    return hours if hours > 0 else None


class ClipboardStore:
    """Owns clipboard records through a storage backend.

    Every read and write checks expiry itself, so an expired record is
    unreachable whether or not the sweeper has purged it yet.
    """

    def __init__(
        self,
        storage: ClipboardStorage,
        default_edit_expiry: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.default_edit_expiry = default_edit_expiry or timedelta(
            seconds=settings.default_edit_expiry_seconds
        )
        self._clock = clock
        # Serializes read-stamp-write so edit timestamps keep increasing
        self._edit_lock = asyncio.Lock()

    def now(self) -> datetime:
        return self._clock()

    # ── Creation ─────────────────────────────────────────────────────────

    def compute_expiry(
        self,
        access_type: AccessType,
        expiry_hours,
        now: datetime,
    ) -> datetime | None:
        """Only edit-mode clipboards expire; view and private ones never do."""
        if access_type is not AccessType.EDIT:
            return None
        hours = _parse_expiry_hours(expiry_hours)
        if hours is None:
            return now + self.default_edit_expiry
        try:
            return now + timedelta(hours=hours)
        except OverflowError:
            raise ValidationError(f"Expiry hours too large: {expiry_hours}") from None

    async def create(
        self,
        content: str | None,
        access_type: str | AccessType | None = None,
        expiry_hours: float | None = None,
    ) -> dict:
        """Create a clipboard with freshly generated codes.

        Makes exactly one insertion attempt. Raises CodeCollisionError if
        either code is already taken; see create_clipboard() for the retrying
        caller.
        """
        if not content:
            raise ValidationError("Content is required")

        access = _resolve_access_type(access_type)
        now = self.now()
        expiry_at = self.compute_expiry(access, expiry_hours, now)

        try:
            record = await self.storage.insert(
                share_code=generate_share_code(),
                view_code=generate_view_code(),
                content=content,
                access_type=access.value,
                expiry_at=expiry_at,
                created_at=now,
            )
        except DuplicateKeyError as e:
            raise CodeCollisionError(f"Generated {e.column} is already in use") from e

        logger.info(
            "Created clipboard %d (access=%s, expires=%s)",
            record.id,
            record.access_type,
            format_timestamp(record.expiry_at) or "never",
        )
        return self.creation_payload(record)

    @staticmethod
    def creation_payload(record: ClipboardRecord) -> dict:
        """Disclose only the code that matches the access type."""
        access = record.access_type
        return {
            "id": record.id,
            "shareCode": record.share_code if access == AccessType.EDIT.value else None,
            "viewCode": record.view_code if access == AccessType.VIEW.value else None,
            "accessType": access,
            "expiryAt": format_timestamp(record.expiry_at),
            "message": "Clipboard created successfully",
        }

    # ── Lookups ──────────────────────────────────────────────────────────

    def _ensure_live(self, record: ClipboardRecord | None) -> ClipboardRecord:
        if record is None:
            raise NotFoundError("Clipboard not found")
        if record.is_expired(self.now()):
            raise ExpiredError("Clipboard has expired")
        return record

    @staticmethod
    def _timestamps(record: ClipboardRecord) -> dict:
        return {
            "createdAt": format_timestamp(record.created_at),
            "updatedAt": format_timestamp(record.updated_at),
            "lastEditAt": format_timestamp(record.last_edit_at),
            "expiryAt": format_timestamp(record.expiry_at),
        }

    async def get_by_share_code(self, code: str) -> dict:
        """Edit-mode view of the clipboard holding this share code."""
        record = self._ensure_live(await self.storage.get_by_share_code(code))
        return {
            "id": record.id,
            "content": record.content,
            "shareCode": record.share_code,
            "accessType": record.access_type,
            **self._timestamps(record),
            "isEditable": True,
        }

    async def get_by_view_code(self, code: str) -> dict:
        """Read-only view. Never includes the share code."""
        record = self._ensure_live(await self.storage.get_by_view_code(code))
        return {
            "id": record.id,
            "content": record.content,
            "viewCode": record.view_code,
            "accessType": record.access_type,
            **self._timestamps(record),
            "isEditable": False,
        }

    # ── Mutations ────────────────────────────────────────────────────────

    async def _authorize(self, clipboard_id: int, share_code: str | None) -> ClipboardRecord:
        """Require a record with this id whose share code matches."""
        record = await self.storage.get_by_id(clipboard_id)
        if record is None:
            raise NotFoundError("Clipboard not found or access denied")
        if not share_code or not secrets.compare_digest(
            record.share_code.encode("utf-8"), share_code.encode("utf-8")
        ):
            raise AccessDeniedError("Clipboard not found or access denied")
        return record

    async def update(
        self,
        clipboard_id: int,
        share_code: str | None,
        content: str | None,
    ) -> dict:
        """Replace the content of an unexpired clipboard."""
        if not content:
            raise ValidationError("Content is required")

        async with self._edit_lock:
            record = await self._authorize(clipboard_id, share_code)
            now = self.now()
            if record.is_expired(now):
                raise ExpiredError("Clipboard has expired")

            # Edit timestamps must strictly increase even within one clock tick
            edited_at = max(now, record.updated_at + _TICK)

            updated = await self.storage.update_content(
                clipboard_id, record.share_code, content, edited_at
            )
            if not updated:
                # Deleted between the check and the write
                raise NotFoundError("Clipboard not found or access denied")

        logger.info("Updated clipboard %d", clipboard_id)
        return {
            "content": content,
            "updatedAt": format_timestamp(edited_at),
            "lastEditAt": format_timestamp(edited_at),
            "message": "Clipboard updated successfully",
        }

    async def delete(self, clipboard_id: int, share_code: str | None) -> dict:
        """Remove a clipboard. Allowed even after it has expired."""
        record = await self._authorize(clipboard_id, share_code)

        deleted = await self.storage.delete(clipboard_id, record.share_code)
        if not deleted:
            raise NotFoundError("Clipboard not found or access denied")

        logger.info("Deleted clipboard %d", clipboard_id)
        return {"message": "Clipboard deleted successfully"}

    # ── Cleanup ──────────────────────────────────────────────────────────

    async def sweep_expired(self) -> int:
        """Physically remove every expired clipboard. Safe to call any time."""
        removed = await self.storage.delete_expired(self.now())
        if removed:
            logger.info("Swept %d expired clipboard(s)", removed)
        return removed

    async def stats(self) -> dict:
        total, expired = await self.storage.count(self.now())
        return {"total": total, "expired": expired}


async def create_clipboard(
    store: ClipboardStore,
    content: str | None,
    access_type: str | AccessType | None = None,
    expiry_hours: float | None = None,
    max_attempts: int | None = None,
) -> dict:
    """Create a clipboard, regenerating codes on collision.

    Gives up after `max_attempts` (default from settings) and re-raises the
    last CodeCollisionError so latency stays bounded when the code space is
    nearly full.
    """
    if max_attempts is None:
        max_attempts = settings.max_create_attempts
    max_attempts = max(1, max_attempts)

    for attempt in range(1, max_attempts + 1):
        try:
            return await store.create(content, access_type, expiry_hours)
        except CodeCollisionError as e:
            logger.warning(
                "Code collision on create (attempt %d/%d): %s",
                attempt,
                max_attempts,
                e,
            )
            if attempt == max_attempts:
                raise


# ── Store singleton ──────────────────────────────────────────────────────────

_store: ClipboardStore | None = None


def get_store() -> ClipboardStore:
    """Get the active clipboard store. Raises if not initialized."""
    if _store is None:
        raise RuntimeError("Clipboard store not initialized. Call init_store() first.")
    return _store


async def init_store(backend: str | None = None) -> ClipboardStore:
    """Open the configured storage backend and install the store singleton."""
    global _store

    storage = create_storage(backend or settings.storage_backend)
    await storage.open()
    _store = ClipboardStore(storage)
    logger.info("Clipboard store ready (backend=%s)", storage.name)
    return _store


async def close_store() -> None:
    """Close the storage backend and drop the singleton."""
    global _store
    if _store is not None:
        await _store.storage.close()
        _store = None
