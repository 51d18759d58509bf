import json

import httpx
import pytest

from conftest import FakeClock

from clipdash.cleanup import cleanup_expired
from clipdash.errors import StoreError
from clipdash.store import SQLiteStore, UpstashStore


class TestSQLiteStore:
    @pytest.fixture
    def sqlite_store(self, tmp_path, clock):
        return SQLiteStore(tmp_path / "data" / "kv.db", clock=clock)

    @pytest.mark.asyncio
    async def test_set_get_exists_delete(self, sqlite_store):
        assert await sqlite_store.get("clipboard:AAAAAA") is None
        assert not await sqlite_store.exists("clipboard:AAAAAA")

        await sqlite_store.set("clipboard:AAAAAA", "value", 60)

        assert await sqlite_store.get("clipboard:AAAAAA") == "value"
        assert await sqlite_store.exists("clipboard:AAAAAA")
        assert await sqlite_store.delete("clipboard:AAAAAA")
        assert not await sqlite_store.delete("clipboard:AAAAAA")
        assert await sqlite_store.get("clipboard:AAAAAA") is None

    @pytest.mark.asyncio
    async def test_set_if_absent_refuses_live_key(self, sqlite_store):
        assert await sqlite_store.set_if_absent("k", "first", 60)
        assert not await sqlite_store.set_if_absent("k", "second", 60)
        assert await sqlite_store.get("k") == "first"

    @pytest.mark.asyncio
    async def test_expired_keys_are_invisible(self, sqlite_store, clock):
        await sqlite_store.set("k", "value", 60)

        clock.advance(60)

        assert await sqlite_store.get("k") is None
        assert not await sqlite_store.exists("k")
        assert not await sqlite_store.delete("k")
        assert await sqlite_store.set_if_absent("k", "fresh", 60)
        assert await sqlite_store.get("k") == "fresh"

    @pytest.mark.asyncio
    async def test_cleanup_purges_expired_rows(self, sqlite_store, clock):
        await sqlite_store.set("old", "value", 10)
        await sqlite_store.set("new", "value", 100)

        clock.advance(50)

        assert await cleanup_expired(sqlite_store) == 1
        assert await cleanup_expired(sqlite_store) == 0
        assert await sqlite_store.get("new") == "value"

    @pytest.mark.asyncio
    async def test_unwritable_path_is_store_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        broken = SQLiteStore(blocker / "kv.db", clock=FakeClock())

        with pytest.raises(StoreError):
            await broken.get("k")


class UpstashStub:
    """Minimal Upstash REST emulation for httpx.MockTransport."""

    def __init__(self):
        self.data = {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        command = json.loads(request.content)
        self.requests.append((request, command))
        if request.headers.get("Authorization") != "Bearer secret-token":
            return httpx.Response(401, json={"error": "WRONGPASS invalid password"})

        name, key, *rest = command
        if name == "SET":
            if "NX" in rest and key in self.data:
                return httpx.Response(200, json={"result": None})
            self.data[key] = rest[0]
            return httpx.Response(200, json={"result": "OK"})
        if name == "GET":
            return httpx.Response(200, json={"result": self.data.get(key)})
        if name == "EXISTS":
            return httpx.Response(200, json={"result": int(key in self.data)})
        if name == "DEL":
            return httpx.Response(200, json={"result": int(self.data.pop(key, None) is not None)})
        return httpx.Response(400, json={"error": f"ERR unknown command '{name}'"})


class TestUpstashStore:
    @pytest.fixture
    def stub(self):
        return UpstashStub()

    def make_store(self, handler, token="secret-token"):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return UpstashStore("https://example.upstash.io/", token, http_client=client)

    @pytest.mark.asyncio
    async def test_commands_round_trip(self, stub):
        store = self.make_store(stub)

        assert await store.set_if_absent("clipboard:AAAAAA", '{"a": 1}', 86400)
        assert not await store.set_if_absent("clipboard:AAAAAA", "other", 86400)
        assert await store.get("clipboard:AAAAAA") == '{"a": 1}'
        assert await store.exists("clipboard:AAAAAA")
        assert await store.delete("clipboard:AAAAAA")
        assert not await store.exists("clipboard:AAAAAA")

        request, command = stub.requests[0]
        assert request.method == "POST"
        assert request.url.host == "example.upstash.io"
        assert command == ["SET", "clipboard:AAAAAA", '{"a": 1}', "EX", "86400", "NX"]

    @pytest.mark.asyncio
    async def test_plain_set_has_expiry(self, stub):
        store = self.make_store(stub)

        await store.set("k", "v", 86400)

        assert stub.requests[0][1] == ["SET", "k", "v", "EX", "86400"]

    @pytest.mark.asyncio
    async def test_error_payload_raises_store_error(self, stub):
        store = self.make_store(stub, token="wrong")

        with pytest.raises(StoreError) as excinfo:
            await store.get("k")
        assert "wrong" not in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_network_failure_raises_store_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = self.make_store(handler)

        with pytest.raises(StoreError):
            await store.exists("k")

    @pytest.mark.asyncio
    async def test_non_json_response_raises_store_error(self):
        store = self.make_store(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(StoreError):
            await store.get("k")

    def test_requires_credentials(self):
        with pytest.raises(ValueError):
            UpstashStore("", "token")
        with pytest.raises(ValueError):
            UpstashStore("https://example.upstash.io", "")
