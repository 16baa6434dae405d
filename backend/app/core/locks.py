"""
Per-document mutual exclusion.

Every read-modify-write against a shared document (an event roster, a
gallery list, a sender's event list) runs inside `hold(key)`. The scope must
only wrap the fetch -> mutate -> write cycle, never blob I/O.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Protocol

from redis import asyncio as aioredis
from redis.exceptions import LockError, RedisError

from app.core.config import settings
from app.core.exceptions import DependentStoreError

logger = logging.getLogger(__name__)


class LockTable(Protocol):
    def hold(self, key: str) -> "AsyncIterator[None]":
        """Async context manager serializing all holders of `key`."""
        ...

    async def close(self) -> None:
        ...


class InProcessLockTable:
    """
    asyncio locks keyed by document key, for a single worker process.
    Entries are reference-counted and dropped once nobody holds or waits.
    """

    def __init__(self, wait_seconds: float = None):
        self.wait_seconds = wait_seconds if wait_seconds is not None else settings.LOCK_WAIT_SECONDS
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            acquire = asyncio.ensure_future(lock.acquire())
            try:
                done, _ = await asyncio.wait({acquire}, timeout=self.wait_seconds)
            except asyncio.CancelledError:
                self._abandon(lock, acquire)
                raise
            if not done:
                self._abandon(lock, acquire)
                logger.error(f"Timed out waiting for lock on {key}")
                raise DependentStoreError(f"Document busy: {key}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    @staticmethod
    def _abandon(lock: asyncio.Lock, acquire: asyncio.Future) -> None:
        # An acquisition that completed anyway must be handed back
        if acquire.done() and not acquire.cancelled():
            lock.release()
        else:
            acquire.cancel()

    async def close(self):
        """In-process locks hold no external resources."""

    def active_keys(self):
        return list(self._locks)


class RedisLockTable:
    """Distributed locks for deployments running several workers."""

    def __init__(self, redis_url: str = None, timeout: float = None, wait_seconds: float = None):
        self.client = aioredis.Redis.from_url(redis_url or settings.REDIS_URL)
        self.timeout = timeout or settings.LOCK_TIMEOUT_SECONDS
        self.wait_seconds = wait_seconds or settings.LOCK_WAIT_SECONDS

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self.client.lock(
            f"lock:{key}",
            timeout=self.timeout,
            blocking_timeout=self.wait_seconds,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error(f"Redis lock error on {key}: {e}")
            raise DependentStoreError("Lock backend unavailable") from e
        if not acquired:
            logger.error(f"Timed out waiting for lock on {key}")
            raise DependentStoreError(f"Document busy: {key}")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # Lease expired while held; another writer may have run.
                logger.warning(f"Lock on {key} expired before release: {e}")

    async def close(self):
        await self.client.aclose()


_lock_tables = {}


async def close_lock_tables():
    """Close every cached lock table; called on application shutdown."""
    for backend, table in list(_lock_tables.items()):
        logger.info(f"Closing lock backend: {backend}")
        await table.close()
    _lock_tables.clear()


def get_lock_table(backend: str = None) -> LockTable:
    """
    Get the process-wide lock table.
    If backend is not specified, uses the default from settings.
    """
    if not backend:
        backend = settings.LOCK_BACKEND.lower()

    if backend in _lock_tables:
        return _lock_tables[backend]

    logger.info(f"Initializing lock backend: {backend}")

    if backend == "redis":
        instance = RedisLockTable()
    elif backend == "local":
        instance = InProcessLockTable()
    else:
        logger.warning(f"Unknown lock backend '{backend}', defaulting to local")
        instance = InProcessLockTable()

    _lock_tables[backend] = instance
    return instance
