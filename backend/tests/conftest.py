"""
Pytest configuration and fixtures.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_PROVIDER", "memory")
os.environ.setdefault("LOCK_BACKEND", "local")

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_locks, get_storage
from app.core.locks import InProcessLockTable
from app.core.security import create_access_token
from app.main import app
from app.services.event_store import EventStore
from app.services.gallery_store import GalleryStore
from app.services.guest_directory import GuestDirectory
from app.services.kv_store import InMemoryKeyValueStore, get_kv_store
from app.services.storage_providers.memory_service import MemoryStorageService


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def locks():
    return InProcessLockTable(wait_seconds=5)


@pytest.fixture
def storage():
    return MemoryStorageService()


@pytest.fixture
def events(kv, locks):
    return EventStore(kv, locks)


@pytest.fixture
def guests(kv, locks):
    return GuestDirectory(kv, locks)


@pytest.fixture
def gallery(kv, locks, storage):
    return GalleryStore(kv, locks, storage, url_ttl=3600)


@pytest.fixture
def auth_headers():
    """Build sender Authorization headers for a user id."""
    def _headers(user_id: str, name: str = None) -> dict:
        claims = {"sub": user_id}
        if name:
            claims["name"] = name
        return {"Authorization": f"Bearer {create_access_token(claims)}"}
    return _headers


@pytest.fixture
async def client(kv, locks, storage):
    """Create test client backed by in-memory stores."""
    app.dependency_overrides[get_kv_store] = lambda: kv
    app.dependency_overrides[get_locks] = lambda: locks
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
