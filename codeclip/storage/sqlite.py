"""SQLite storage backend owning a single aiosqlite connection."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path

import aiosqlite

from codeclip.config import settings
from codeclip.errors import DuplicateKeyError, StorageError
from codeclip.migrations.runner import run_migrations
from codeclip.models.clipboard import (
    ClipboardRecord,
    format_timestamp,
    parse_timestamp,
)
from codeclip.storage.base import ClipboardStorage

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value; the driver cannot bind anything wider
ROWID_MIN = -(2**63)
ROWID_MAX = 2**63 - 1


def _row_to_record(columns: list[str], row: tuple) -> ClipboardRecord:
    data = dict(zip(columns, row))
    return ClipboardRecord(
        id=data["id"],
        share_code=data["share_code"],
        view_code=data["view_code"],
        content=data["content"],
        access_type=data["access_type"],
        expiry_at=parse_timestamp(data["expiry_at"]),
        created_at=parse_timestamp(data["created_at"]),
        updated_at=parse_timestamp(data["updated_at"]),
        last_edit_at=parse_timestamp(data["last_edit_at"]),
    )


def _storable_id(clipboard_id: int) -> bool:
    return ROWID_MIN <= clipboard_id <= ROWID_MAX


class SQLiteStorage(ClipboardStorage):
    """Clipboards stored in the `clipboards` table.

    Code uniqueness comes from the UNIQUE constraints on share_code and
    view_code. Writes share one connection, so each execute+commit pair runs
    under a lock to keep a failed insert's rollback from discarding another
    coroutine's uncommitted write.
    """

    name = "sqlite"

    def __init__(self, db_path: Path | None = None):
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._db_path or settings.db_path

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("SQLite storage is not open")
        return self._db

    async def open(self) -> None:
        if self._db is not None:
            return
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)

        db = await aiosqlite.connect(str(path))
        try:
            # WAL lets readers proceed while a write is in flight
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA busy_timeout=5000")
            await db.commit()
            applied = await run_migrations(db)
        except aiosqlite.Error as e:
            await db.close()
            raise StorageError(f"Could not open {path}: {e}") from e

        self._db = db
        logger.info("Opened clipboard database %s (%d migrations applied)", path, len(applied))

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def _fetch_one(self, query: str, params: tuple) -> ClipboardRecord | None:
        db = self.connection
        try:
            cursor = await db.execute(query, params)
            columns = [desc[0] for desc in cursor.description]
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(str(e)) from e
        if row is None:
            return None
        return _row_to_record(columns, row)

    async def _taken_column(self, share_code: str, view_code: str) -> str | None:
        """Work out which code collided after an integrity failure."""
        try:
            cursor = await self.connection.execute(
                "SELECT share_code, view_code FROM clipboards WHERE share_code = ? OR view_code = ?",
                (share_code, view_code),
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(str(e)) from e
        for existing_share, existing_view in rows:
            if existing_share == share_code:
                return "share_code"
            if existing_view == view_code:
                return "view_code"
        return None

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
        db = self.connection
        stamp = format_timestamp(created_at)

        async with self._write_lock:
            try:
                cursor = await db.execute(
                    """INSERT INTO clipboards
                           (share_code, view_code, content, access_type, expiry_at,
                            created_at, updated_at, last_edit_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        share_code,
                        view_code,
                        content,
                        access_type,
                        format_timestamp(expiry_at),
                        stamp,
                        stamp,
                        stamp,
                    ),
                )
                await db.commit()
            except aiosqlite.IntegrityError as e:
                await db.rollback()
                column = await self._taken_column(share_code, view_code)
                if column is None:
                    raise StorageError(str(e)) from e
                raise DuplicateKeyError(column) from e
            except aiosqlite.Error as e:
                await db.rollback()
                raise StorageError(str(e)) from e

        return ClipboardRecord(
            id=cursor.lastrowid,
            share_code=share_code,
            view_code=view_code,
            content=content,
            access_type=access_type,
            expiry_at=expiry_at,
            created_at=created_at,
            updated_at=created_at,
            last_edit_at=created_at,
        )

    async def get_by_id(self, clipboard_id: int) -> ClipboardRecord | None:
        if not _storable_id(clipboard_id):
            return None
        return await self._fetch_one(
            "SELECT * FROM clipboards WHERE id = ?", (clipboard_id,)
        )

    async def get_by_share_code(self, code: str) -> ClipboardRecord | None:
        return await self._fetch_one(
            "SELECT * FROM clipboards WHERE share_code = ?", (code,)
        )

    async def get_by_view_code(self, code: str) -> ClipboardRecord | None:
        return await self._fetch_one(
            "SELECT * FROM clipboards WHERE view_code = ?", (code,)
        )

    async def _write(self, query: str, params: tuple) -> int:
        """Run a single write statement and return the affected row count."""
        db = self.connection
        async with self._write_lock:
            try:
                cursor = await db.execute(query, params)
                await db.commit()
            except aiosqlite.Error as e:
                await db.rollback()
                raise StorageError(str(e)) from e
        return cursor.rowcount

    async def update_content(
        self,
        clipboard_id: int,
        share_code: str,
        content: str,
        edited_at: datetime,
    ) -> bool:
        if not _storable_id(clipboard_id):
            return False
        stamp = format_timestamp(edited_at)
        changed = await self._write(
            """UPDATE clipboards
               SET content = ?, updated_at = ?, last_edit_at = ?
               WHERE id = ? AND share_code = ?""",
            (content, stamp, stamp, clipboard_id, share_code),
        )
        return changed > 0

    async def delete(self, clipboard_id: int, share_code: str) -> bool:
        if not _storable_id(clipboard_id):
            return False
        changed = await self._write(
            "DELETE FROM clipboards WHERE id = ? AND share_code = ?",
            (clipboard_id, share_code),
        )
        return changed > 0

    async def delete_expired(self, now: datetime) -> int:
        return await self._write(
            "DELETE FROM clipboards WHERE expiry_at IS NOT NULL AND expiry_at <= ?",
            (format_timestamp(now),),
        )

    async def count(self, now: datetime) -> tuple[int, int]:
        try:
            cursor = await self.connection.execute(
                """SELECT COUNT(*),
                          COALESCE(SUM(CASE WHEN expiry_at IS NOT NULL AND expiry_at <= ?
                                            THEN 1 ELSE 0 END), 0)
                   FROM clipboards""",
                (format_timestamp(now),),
            )
            total, expired = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(str(e)) from e
        return total, expired
