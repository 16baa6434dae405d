"""
Tests for the document lock tables.
"""
import asyncio
import logging

import pytest
from redis.exceptions import LockError, RedisError

from app.core import locks as locks_module
from app.core.exceptions import DependentStoreError
from app.core.locks import InProcessLockTable, RedisLockTable, close_lock_tables


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = InProcessLockTable(wait_seconds=5)
    order = []

    async def worker(name):
        async with locks.hold("gallery:e1"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_different_keys_do_not_block():
    locks = InProcessLockTable(wait_seconds=1)
    async with locks.hold("event:1"):
        async with locks.hold("event:2"):
            assert set(locks.active_keys()) == {"event:1", "event:2"}


@pytest.mark.asyncio
async def test_idle_keys_are_dropped():
    locks = InProcessLockTable(wait_seconds=1)
    async with locks.hold("event:1"):
        pass
    assert locks.active_keys() == []


@pytest.mark.asyncio
async def test_wait_is_bounded():
    locks = InProcessLockTable(wait_seconds=0.05)
    async with locks.hold("event:1"):
        with pytest.raises(DependentStoreError):
            async with locks.hold("event:1"):
                pass
    assert locks.active_keys() == []


@pytest.mark.asyncio
async def test_lock_released_on_error():
    locks = InProcessLockTable(wait_seconds=1)
    with pytest.raises(ValueError):
        async with locks.hold("event:1"):
            raise ValueError("boom")
    async with locks.hold("event:1"):
        pass


@pytest.mark.asyncio
async def test_acquisition_that_lands_at_timeout_is_handed_back():
    lock = asyncio.Lock()
    acquire = asyncio.ensure_future(lock.acquire())
    await acquire
    InProcessLockTable._abandon(lock, acquire)
    assert not lock.locked()


@pytest.mark.asyncio
async def test_pending_acquisition_is_cancelled_on_timeout():
    lock = asyncio.Lock()
    await lock.acquire()
    acquire = asyncio.ensure_future(lock.acquire())
    await asyncio.sleep(0)
    InProcessLockTable._abandon(lock, acquire)
    lock.release()
    with pytest.raises(asyncio.CancelledError):
        await acquire
    assert not lock.locked()


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_keep_lock():
    locks = InProcessLockTable(wait_seconds=5)
    entered = asyncio.Event()
    release = asyncio.Event()

    async def holder():
        async with locks.hold("event:1"):
            entered.set()
            await release.wait()

    async def waiter():
        async with locks.hold("event:1"):
            pass

    holding = asyncio.create_task(holder())
    await entered.wait()
    waiting = asyncio.create_task(waiter())
    await asyncio.sleep(0.01)
    waiting.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiting
    release.set()
    await holding

    locks.wait_seconds = 0.05
    async with locks.hold("event:1"):
        pass
    assert locks.active_keys() == []


class StubRedisLock:
    def __init__(self, acquire_result=True, acquire_error=None, release_error=None):
        self.acquire_result = acquire_result
        self.acquire_error = acquire_error
        self.release_error = release_error
        self.released = False

    async def acquire(self):
        if self.acquire_error:
            raise self.acquire_error
        return self.acquire_result

    async def release(self):
        self.released = True
        if self.release_error:
            raise self.release_error


class StubRedisClient:
    def __init__(self, lock):
        self._lock = lock
        self.calls = []
        self.closed = False

    def lock(self, name, timeout=None, blocking_timeout=None):
        self.calls.append((name, timeout, blocking_timeout))
        return self._lock

    async def aclose(self):
        self.closed = True


def _redis_table(lock):
    table = RedisLockTable(redis_url="redis://localhost:6379/0", timeout=10, wait_seconds=2)
    table.client = StubRedisClient(lock)
    return table


@pytest.mark.asyncio
async def test_redis_lock_uses_lease_and_wait_bound():
    lock = StubRedisLock()
    table = _redis_table(lock)
    async with table.hold("gallery:e1"):
        pass
    assert table.client.calls == [("lock:gallery:e1", 10, 2)]
    assert lock.released


@pytest.mark.asyncio
async def test_redis_lock_wait_timeout_is_store_error():
    table = _redis_table(StubRedisLock(acquire_result=False))
    body_ran = False
    with pytest.raises(DependentStoreError):
        async with table.hold("event:1"):
            body_ran = True
    assert not body_ran


@pytest.mark.asyncio
async def test_redis_backend_error_is_store_error():
    table = _redis_table(StubRedisLock(acquire_error=RedisError("connection refused")))
    with pytest.raises(DependentStoreError):
        async with table.hold("event:1"):
            pass


@pytest.mark.asyncio
async def test_redis_expired_lease_on_release_only_warns(caplog):
    lock = StubRedisLock(release_error=LockError("expired"))
    table = _redis_table(lock)
    completed = False
    with caplog.at_level(logging.WARNING, logger="app.core.locks"):
        async with table.hold("event:1"):
            completed = True
    assert completed
    assert lock.released
    assert "expired before release" in caplog.text


@pytest.mark.asyncio
async def test_close_lock_tables_closes_and_clears_cache(monkeypatch):
    table = _redis_table(StubRedisLock())
    monkeypatch.setattr(locks_module, "_lock_tables", {"redis": table})
    await close_lock_tables()
    assert table.client.closed
    assert locks_module._lock_tables == {}
