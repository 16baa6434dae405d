"""
Key-value document persistence.

Opaque string keys map to JSON-like documents. There is no cross-key
atomicity: a single key is the only durability unit, and callers serialize
read-modify-write cycles themselves (see `app.core.locks`).
"""
import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.database import AsyncSessionLocal
from app.core.exceptions import DependentStoreError
from app.models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


# Key layout
def event_key(event_id: str) -> str:
    return f"event:{event_id}"


def sender_events_key(owner_id: str) -> str:
    return f"sender:{owner_id}:events"


def gallery_key(event_id: str) -> str:
    return f"gallery:{event_id}"


def guest_token_key(token: str) -> str:
    return f"guest:token:{token}"


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def mget(self, keys: List[str]) -> List[Optional[Any]]:
        """Values in the order of `keys`, None for missing ones."""
        ...


class SQLKeyValueStore:
    """
    KeyValueStore over the kv_store table.
    Each call runs in its own session and commits on its own.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get(self, key: str) -> Optional[Any]:
        try:
            async with self.session_factory() as db:
                result = await db.execute(select(KVEntry.value).where(KVEntry.key == key))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"KV get failed for {key}: {e}")
            raise DependentStoreError("Key-value store unavailable") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            async with self.session_factory() as db:
                await db.merge(KVEntry(key=key, value=value))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"KV set failed for {key}: {e}")
            raise DependentStoreError("Key-value store unavailable") from e

    async def delete(self, key: str) -> None:
        try:
            async with self.session_factory() as db:
                await db.execute(delete(KVEntry).where(KVEntry.key == key))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"KV delete failed for {key}: {e}")
            raise DependentStoreError("Key-value store unavailable") from e

    async def mget(self, keys: List[str]) -> List[Optional[Any]]:
        if not keys:
            return []
        try:
            async with self.session_factory() as db:
                result = await db.execute(
                    select(KVEntry.key, KVEntry.value).where(KVEntry.key.in_(keys))
                )
                found = {row.key: row.value for row in result}
        except SQLAlchemyError as e:
            logger.error(f"KV mget failed for {len(keys)} keys: {e}")
            raise DependentStoreError("Key-value store unavailable") from e
        return [found.get(key) for key in keys]


class InMemoryKeyValueStore:
    """
    Dict-backed KeyValueStore for tests and local runs.

    Values are deep-copied in and out so callers never share state with the
    store, and every call yields to the event loop like a network round trip.
    """

    def __init__(self):
        self.data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        await asyncio.sleep(0)
        return copy.deepcopy(self.data.get(key))

    async def set(self, key: str, value: Any) -> None:
        await asyncio.sleep(0)
        self.data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        await asyncio.sleep(0)
        self.data.pop(key, None)

    async def mget(self, keys: List[str]) -> List[Optional[Any]]:
        await asyncio.sleep(0)
        return [copy.deepcopy(self.data.get(key)) for key in keys]


def get_kv_store() -> KeyValueStore:
    """
    Dependency to get the document store.
    Usage in FastAPI:
        @router.get("/")
        async def endpoint(kv: KeyValueStore = Depends(get_kv_store)):
            ...
    """
    return SQLKeyValueStore(AsyncSessionLocal)
