"""
Background cleanup worker for expired shares in the local SQLite store.

Upstash expires keys on its own; only the SQLite backend needs this loop.
"""
import asyncio
import logging

from clipdash.store import SQLiteStore

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 60


async def cleanup_expired(store: SQLiteStore) -> int:
    """Delete expired shares."""
    removed = await store.purge_expired()
    if removed:
        logger.info(f"Purged {removed} expired share(s)")
    return removed


async def cleanup_loop(store: SQLiteStore, interval: float = CLEANUP_INTERVAL_SECONDS):
    """Run cleanup every `interval` seconds."""
    while True:
        try:
            await cleanup_expired(store)
        except Exception as e:
            logger.error(f"Cleanup error: {e}")
        await asyncio.sleep(interval)
