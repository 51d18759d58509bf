import pytest
from fastapi.testclient import TestClient

from clipdash.config import Settings
from clipdash.errors import StoreError
from clipdash.main import create_app, get_share_service
from clipdash.share_service import ShareService
from clipdash.store import ShareStore


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeStore(ShareStore):
    """In-memory ShareStore honouring TTLs against a FakeClock."""

    def __init__(self, clock: FakeClock = None):
        self.clock = clock or FakeClock()
        self.data = {}
        self.ttls = {}
        self.writes = []

    def _live(self, key):
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self.clock():
            del self.data[key]
            return None
        return value

    async def get(self, key):
        return self._live(key)

    async def set(self, key, value, ttl):
        self.data[key] = (value, self.clock() + ttl)
        self.ttls[key] = ttl
        self.writes.append(("set", key))

    async def set_if_absent(self, key, value, ttl):
        if self._live(key) is not None:
            self.writes.append(("refused", key))
            return False
        self.data[key] = (value, self.clock() + ttl)
        self.ttls[key] = ttl
        self.writes.append(("set_if_absent", key))
        return True

    async def exists(self, key):
        return self._live(key) is not None

    async def delete(self, key):
        return self.data.pop(key, None) is not None


class BrokenStore(ShareStore):
    """Every call fails like an unreachable store."""

    async def get(self, key):
        raise StoreError()

    async def set(self, key, value, ttl):
        raise StoreError()

    async def set_if_absent(self, key, value, ttl):
        raise StoreError()

    async def exists(self, key):
        raise StoreError()

    async def delete(self, key):
        raise StoreError()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return FakeStore(clock)


@pytest.fixture
def service(store):
    return ShareService(store)


@pytest.fixture
def settings(tmp_path):
    docs = tmp_path / "files"
    docs.mkdir()
    (docs / "cours-arduino.md").write_text("# Arduino\n\nPremiers pas.\n", encoding="utf-8")
    return Settings(
        store_backend="upstash",
        upstash_url="https://example.upstash.io",
        upstash_token="secret-token",
        docs_path=docs,
        extra_hosts=["testserver"],
    )


@pytest.fixture
def app(settings, store):
    application = create_app(settings)
    application.dependency_overrides[get_share_service] = lambda: ShareService(store)
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def text_item():
    return {"kind": "text", "content": "hello"}


@pytest.fixture
def file_item():
    return {
        "kind": "file",
        "content": "data:text/plain;base64,aGVsbG8=",
        "fileName": "hello.txt",
        "fileType": "text/plain",
        "fileSize": 5,
    }
