"""
Service wiring for request handlers.

Every handler receives its stores through these dependencies, so tests swap
backends with `app.dependency_overrides`.
"""
from fastapi import Depends

from app.core.locks import LockTable, get_lock_table
from app.services.event_store import EventStore
from app.services.gallery_store import GalleryStore
from app.services.guest_directory import GuestDirectory
from app.services.kv_store import KeyValueStore, get_kv_store
from app.services.storage_factory import get_storage_service
from app.services.storage_interface import StorageInterface


def get_locks() -> LockTable:
    return get_lock_table()


def get_storage() -> StorageInterface:
    return get_storage_service()


def get_event_store(
    kv: KeyValueStore = Depends(get_kv_store),
    locks: LockTable = Depends(get_locks),
) -> EventStore:
    return EventStore(kv, locks)


def get_guest_directory(
    kv: KeyValueStore = Depends(get_kv_store),
    locks: LockTable = Depends(get_locks),
) -> GuestDirectory:
    return GuestDirectory(kv, locks)


def get_gallery_store(
    kv: KeyValueStore = Depends(get_kv_store),
    locks: LockTable = Depends(get_locks),
    storage: StorageInterface = Depends(get_storage),
) -> GalleryStore:
    return GalleryStore(kv, locks, storage)
