"""Schema migrations for the SQLite backend.

Each entry in MIGRATIONS names a module exposing `async def upgrade(db)`.
Applied names are recorded in `_migrations`, so a migration runs at most
once per database file.
"""

import importlib
import logging

import aiosqlite

logger = logging.getLogger(__name__)

MIGRATIONS = [
    "codeclip.migrations.m001_initial",
]


async def _applied_names(db: aiosqlite.Connection) -> set[str]:
    await db.execute(
        """CREATE TABLE IF NOT EXISTS _migrations (
               name TEXT PRIMARY KEY,
               applied_at TEXT NOT NULL DEFAULT (datetime('now'))
           )"""
    )
    cursor = await db.execute("SELECT name FROM _migrations")
    return {name for (name,) in await cursor.fetchall()}


async def run_migrations(db: aiosqlite.Connection) -> list[str]:
    """Apply pending migrations in order and return the names applied."""
    done = await _applied_names(db)
    pending = [name for name in MIGRATIONS if name not in done]

    for name in pending:
        await importlib.import_module(name).upgrade(db)
        await db.execute("INSERT INTO _migrations (name) VALUES (?)", (name,))
        await db.commit()
        logger.info("Applied migration %s", name)

    await db.commit()
    return pending
