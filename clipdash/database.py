"""
SQLite async database connection and initialization for the local store backend.
"""
from pathlib import Path

import aiosqlite


async def get_db(database_path: Path):
    """Get database connection."""
    db = await aiosqlite.connect(database_path)
    db.row_factory = aiosqlite.Row
    return db


async def init_db(database_path: Path):
    """Initialize database with required tables."""
    database_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(database_path) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                expires_at REAL NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await db.execute("""
            CREATE INDEX IF NOT EXISTS idx_kv_store_expires ON kv_store(expires_at)
        """)
        await db.commit()
