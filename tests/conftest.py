"""Pytest configuration and fixtures for vdrive.

Everything runs against the in-memory object store and cache; the S3
adapter is covered separately with botocore's Stubber. HTTP tests use the
app from vdrive.main.create_app() with the storage facade overridden.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from vdrive.api.v1.dependencies import get_storage_facade
from vdrive.application.use_cases.storage_facade import StorageFacade
from vdrive.core.config import Settings
from vdrive.infrastructure.cache.memory_cache import MemoryCacheStore
from vdrive.infrastructure.exceptions import ObjectStoreError
from vdrive.infrastructure.external.storage.memory_store import MemoryObjectStore
from vdrive.main import create_app

TENANT = "u1"


class FaultyObjectStore(MemoryObjectStore):
    """MemoryObjectStore that records calls and fails chosen (operation, key) pairs.

    For list_objects the key is the listing prefix.
    """

    def __init__(self) -> None:
        super().__init__()
        self.faults: dict[tuple[str, str], ObjectStoreError] = {}
        self.calls: list[tuple[str, str]] = []

    def fail(self, operation: str, key: str, retryable: bool = False) -> None:
        self.faults[(operation, key)] = ObjectStoreError(
            operation,
            key,
            "injected failure",
            status_code=503 if retryable else 403,
            retryable=retryable,
        )

    def _check(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        exc = self.faults.get((operation, key))
        if exc is not None:
            raise exc

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    async def list_objects(self, prefix, delimiter=None, continuation_token=None, max_keys=1000):
        self._check("list_objects", prefix)
        return await super().list_objects(prefix, delimiter, continuation_token, max_keys)

    async def head_object(self, key):
        self._check("head_object", key)
        return await super().head_object(key)

    async def put_object(self, key, body=b"", content_type="application/octet-stream"):
        self._check("put_object", key)
        await super().put_object(key, body, content_type)

    async def copy_object(self, source_key, dest_key):
        self._check("copy_object", source_key)
        await super().copy_object(source_key, dest_key)

    async def delete_object(self, key):
        self._check("delete_object", key)
        await super().delete_object(key)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from .env, memory backends, defaults otherwise."""
    return Settings(_env_file=None, storage_backend="memory", cache_backend="memory")


@pytest.fixture
def store() -> FaultyObjectStore:
    return FaultyObjectStore()


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore(default_ttl=300)


@pytest.fixture
def facade(store: FaultyObjectStore, cache: MemoryCacheStore, settings: Settings) -> StorageFacade:
    return StorageFacade(store, cache=cache, settings=settings)


@pytest.fixture
def put_file(store: FaultyObjectStore):
    """Write an object directly into the store, bypassing the facade."""

    async def _put(key: str, body: bytes = b"data", content_type: str = "application/octet-stream"):
        await MemoryObjectStore.put_object(store, key, body, content_type)

    return _put


@pytest.fixture
async def client(facade: StorageFacade) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    app = create_app()
    app.dependency_overrides[get_storage_facade] = lambda: facade
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def tenant_headers() -> dict[str, str]:
    return {"X-Tenant-ID": TENANT}
