"""
Key-value store adapters with per-key expiry.

The share service only needs five primitives: get, set with TTL, atomic
set-if-absent with TTL, exists and delete. Two backends implement them:

* UpstashStore talks to the Upstash Redis REST API (one JSON command per POST).
* SQLiteStore keeps keys in a local table with an expiry timestamp, for
  development and single-host deployments.
"""
import logging
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

import aiosqlite
import httpx

from clipdash.database import get_db, init_db
from clipdash.errors import StoreError

logger = logging.getLogger(__name__)


class ShareStore:
    """Async contract over a key-value store with per-key expiry."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl: int) -> None:
        raise NotImplementedError

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        """Write only if the key is absent. Returns False when the key exists."""
        raise NotImplementedError

    async def exists(self, key: str) -> bool:
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        raise NotImplementedError

    async def close(self):
        pass


class UpstashStore(ShareStore):
    """Upstash Redis over its REST API."""

    def __init__(
        self,
        url: str,
        token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        if not url:
            raise ValueError("url is required")
        if not token:
            raise ValueError("token is required")
        self._url = url.rstrip("/")
        self._token = token
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def _headers(self) -> dict:
        # Never log these headers.
        return {"Authorization": f"Bearer {self._token}"}

    async def command(self, *args: Any) -> Any:
        """Run one Redis command and return its `result` field."""
        try:
            resp = await self._client.post(
                self._url, json=[str(a) for a in args], headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Upstash {args[0]} failed: {e.__class__.__name__}")
            raise StoreError() from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if resp.status_code >= 400 or not isinstance(payload, dict) or "error" in payload:
            detail = payload.get("error") if isinstance(payload, dict) else resp.text[:200]
            logger.error(f"Upstash {args[0]} rejected (status={resp.status_code}): {detail}")
            raise StoreError()
        return payload.get("result")

    async def get(self, key: str) -> Optional[str]:
        return await self.command("GET", key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self.command("SET", key, value, "EX", ttl)

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        # SET ... NX answers null when the key already exists
        return await self.command("SET", key, value, "EX", ttl, "NX") == "OK"

    async def exists(self, key: str) -> bool:
        return int(await self.command("EXISTS", key) or 0) > 0

    async def delete(self, key: str) -> bool:
        return int(await self.command("DEL", key) or 0) > 0

    async def close(self):
        if self._owns_client:
            await self._client.aclose()


class SQLiteStore(ShareStore):
    """
    Local store backed by a SQLite table.

    Expired rows are invisible to every operation; purge_expired() removes
    them for good and is driven by the cleanup loop.
    """

    def __init__(self, database_path: Path, clock: Callable[[], float] = time.time):
        self.database_path = Path(database_path)
        self._clock = clock
        self._initialized = False

    async def _connect(self):
        try:
            if not self._initialized:
                await init_db(self.database_path)
                self._initialized = True
            return await get_db(self.database_path)
        except (aiosqlite.Error, OSError) as e:
            logger.error(f"SQLite store unavailable: {e}")
            raise StoreError() from e

    async def _run(self, statements: List[tuple], fetch: bool = False):
        db = await self._connect()
        try:
            cursor = None
            for sql, params in statements:
                cursor = await db.execute(sql, params)
            if fetch:
                return await cursor.fetchone()
            await db.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            logger.error(f"SQLite store error: {e}")
            raise StoreError() from e
        finally:
            await db.close()

    async def get(self, key: str) -> Optional[str]:
        row = await self._run(
            [("SELECT value FROM kv_store WHERE key = ? AND expires_at > ?", (key, self._clock()))],
            fetch=True,
        )
        return row["value"] if row else None

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self._run([(
            "INSERT OR REPLACE INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)",
            (key, value, self._clock() + ttl),
        )])

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        now = self._clock()
        inserted = await self._run([
            ("DELETE FROM kv_store WHERE key = ? AND expires_at <= ?", (key, now)),
            (
                "INSERT OR IGNORE INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, now + ttl),
            ),
        ])
        return inserted == 1

    async def exists(self, key: str) -> bool:
        row = await self._run(
            [("SELECT 1 FROM kv_store WHERE key = ? AND expires_at > ?", (key, self._clock()))],
            fetch=True,
        )
        return row is not None

    async def delete(self, key: str) -> bool:
        deleted = await self._run(
            [("DELETE FROM kv_store WHERE key = ? AND expires_at > ?", (key, self._clock()))]
        )
        return deleted > 0

    async def purge_expired(self) -> int:
        """Delete expired rows and return how many were removed."""
        return await self._run(
            [("DELETE FROM kv_store WHERE expires_at <= ?", (self._clock(),))]
        )
