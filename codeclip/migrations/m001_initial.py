"""Initial database schema.

Creates the clipboards table. Both access codes carry UNIQUE constraints so
that concurrent creates can never hand out the same code twice.
"""

import aiosqlite


async def upgrade(db: aiosqlite.Connection) -> None:
    """Create the initial database schema."""

    # ── Clipboards table ─────────────────────────────────────────────────
    # Timestamps are ISO-8601 UTC strings with microseconds, so text
    # comparison matches chronological order.
    await db.execute("""
        CREATE TABLE clipboards (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            share_code    TEXT NOT NULL UNIQUE,
            view_code     TEXT NOT NULL UNIQUE,
            content       TEXT NOT NULL,
            access_type   TEXT NOT NULL DEFAULT 'edit',
            expiry_at     TEXT,
            created_at    TEXT NOT NULL,
            updated_at    TEXT NOT NULL,
            last_edit_at  TEXT NOT NULL
        )
    """)
    await db.execute("CREATE INDEX idx_clipboards_expiry_at ON clipboards(expiry_at)")

    await db.commit()
