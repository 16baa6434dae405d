"""
Guest directory: token-authenticated access to a single guest record.

Guests are embedded in their Event, so every guest mutation rewrites the
whole Event under the event lock. Self-deletion removes the guest first and
the token index entry second; a token left behind by a failure in between
resolves as not found.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import NotFoundError, ValidationError
from app.core.locks import LockTable
from app.schemas.events import Event, Guest
from app.services.identity import TokenEntry, TokenIndex
from app.services.kv_store import KeyValueStore, event_key

logger = logging.getLogger(__name__)


@dataclass
class GuestSession:
    event: Event
    guest: Guest


class GuestDirectory:
    def __init__(self, kv: KeyValueStore, locks: LockTable):
        self.kv = kv
        self.locks = locks
        self.tokens = TokenIndex(kv)

    async def _entry(self, token: str) -> TokenEntry:
        entry = await self.tokens.get(token)
        if not entry:
            raise NotFoundError("Invalid invitation link")
        return entry

    async def _load_event(self, entry: TokenEntry) -> Event:
        doc = await self.kv.get(event_key(entry.event_id))
        if not doc:
            raise NotFoundError("Guest not found")
        return Event.from_document(doc)

    async def resolve_token(self, token: str) -> GuestSession:
        entry = await self._entry(token)
        event = await self._load_event(entry)
        guest = event.find_guest(entry.guest_id)
        if not guest:
            logger.warning(f"Dangling guest token for event {entry.event_id}")
            raise NotFoundError("Guest not found")
        return GuestSession(event=event, guest=guest)

    async def update_profile(
        self,
        token: str,
        username: Optional[str] = None,
        profile_photo: Optional[str] = None,
    ) -> Guest:
        if username is not None:
            username = username.strip()
            if not username:
                raise ValidationError("Username must not be blank")

        entry = await self._entry(token)
        async with self.locks.hold(event_key(entry.event_id)):
            event = await self._load_event(entry)
            guest = event.find_guest(entry.guest_id)
            if not guest:
                raise NotFoundError("Guest not found")

            if username is not None:
                guest.username = username
            if profile_photo is not None:
                guest.profile_photo = profile_photo or None

            await self.kv.set(event_key(event.id), event.to_document())
        return guest

    async def delete_self(self, token: str) -> None:
        entry = await self._entry(token)
        async with self.locks.hold(event_key(entry.event_id)):
            doc = await self.kv.get(event_key(entry.event_id))
            event = Event.from_document(doc) if doc else None
            removed = False
            if event:
                remaining = [g for g in event.guests if g.id != entry.guest_id]
                removed = len(remaining) != len(event.guests)
                if removed:
                    event.guests = remaining
                    await self.kv.set(event_key(event.id), event.to_document())

        await self.tokens.delete(token)

        if not removed:
            logger.warning(f"Removed dangling guest token for event {entry.event_id}")
            raise NotFoundError("Guest not found")
        logger.info(f"Guest {entry.guest_id} left event {entry.event_id}")
