"""
Identifiers, guest bearer tokens and the guest-token index.

A guest token is the guest's entire credential, so it comes from the
`secrets` CSPRNG with at least 128 bits of entropy.
"""
import secrets
import uuid
from dataclasses import dataclass
from typing import Optional

from app.core.config import settings
from app.services.kv_store import KeyValueStore, guest_token_key

MIN_GUEST_TOKEN_BYTES = 16


def new_id() -> str:
    """Opaque identifier for events, guests, images and comments."""
    return uuid.uuid4().hex


def new_guest_token(nbytes: int = None) -> str:
    nbytes = max(nbytes or settings.GUEST_TOKEN_BYTES, MIN_GUEST_TOKEN_BYTES)
    return secrets.token_urlsafe(nbytes)


def default_username() -> str:
    return f"guest{secrets.token_hex(3).upper()}"


@dataclass(frozen=True)
class TokenEntry:
    event_id: str
    guest_id: str


class TokenIndex:
    """
    Flat `guest:token:{token} -> {eventId, guestId}` keyspace.
    Each entry is its own key, so writes need no lock.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    async def put(self, token: str, event_id: str, guest_id: str) -> None:
        await self.kv.set(guest_token_key(token), {"eventId": event_id, "guestId": guest_id})

    async def get(self, token: str) -> Optional[TokenEntry]:
        if not token:
            return None
        doc = await self.kv.get(guest_token_key(token))
        if not doc:
            return None
        return TokenEntry(event_id=doc["eventId"], guest_id=doc["guestId"])

    async def delete(self, token: str) -> None:
        await self.kv.delete(guest_token_key(token))
