"""
Event store: the Event aggregate and its embedded guest roster.

Event mutations are whole-document read-modify-writes on `event:{id}`,
serialized per event through the lock table. Creating an event writes two
keys (the event, then the owner's id list) without a transaction; a failure
between them leaves an event that is not listed for its owner.
"""
import datetime
import logging
from typing import List, Optional

from app.core.exceptions import AuthorizationError, NotFoundError
from app.core.locks import LockTable
from app.schemas.events import (
    Event,
    Guest,
    GuestInput,
    InvitationPayload,
    InvitationType,
    Occasion,
)
from app.services.identity import TokenIndex, default_username, new_guest_token, new_id
from app.services.kv_store import KeyValueStore, event_key, sender_events_key

logger = logging.getLogger(__name__)

NAME_PLACEHOLDER = "{name}"


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def guest_link(origin: str, guest_token: str) -> str:
    return f"{origin.rstrip('/')}/guest/{guest_token}"


class EventStore:
    def __init__(self, kv: KeyValueStore, locks: LockTable):
        self.kv = kv
        self.locks = locks
        self.tokens = TokenIndex(kv)

    async def _load(self, event_id: str) -> Event:
        doc = await self.kv.get(event_key(event_id))
        if not doc:
            raise NotFoundError("Event not found")
        return Event.from_document(doc)

    async def _save(self, event: Event) -> None:
        await self.kv.set(event_key(event.id), event.to_document())

    @staticmethod
    def _check_owner(event: Event, owner_id: str) -> None:
        if event.owner_id != owner_id:
            raise AuthorizationError("Event not found or unauthorized")

    async def create_event(
        self,
        owner_id: str,
        name: str,
        occasion: Occasion,
        description: Optional[str],
        date: datetime.date,
    ) -> Event:
        event = Event(
            id=new_id(),
            owner_id=owner_id,
            name=name,
            occasion=occasion,
            description=description,
            date=date,
            guests=[],
            invitations_sent=False,
            created_at=utcnow(),
        )
        await self._save(event)

        list_key = sender_events_key(owner_id)
        async with self.locks.hold(list_key):
            event_ids = await self.kv.get(list_key) or []
            event_ids.append(event.id)
            await self.kv.set(list_key, event_ids)

        logger.info(f"Created event {event.id} for sender {owner_id}")
        return event

    async def list_events(self, owner_id: str) -> List[Event]:
        event_ids = await self.kv.get(sender_events_key(owner_id)) or []
        docs = await self.kv.mget([event_key(event_id) for event_id in event_ids])

        events = []
        for event_id, doc in zip(event_ids, docs):
            if not doc:
                logger.warning(f"Sender {owner_id} lists missing event {event_id}")
                continue
            events.append(Event.from_document(doc))
        return events

    async def get_event(self, event_id: str) -> Event:
        return await self._load(event_id)

    async def add_guests(self, owner_id: str, event_id: str, guest_inputs: List[GuestInput]) -> List[Guest]:
        new_guests = [
            Guest(
                id=new_id(),
                phone=item.phone,
                custom_message=item.custom_message or None,
                custom_name=item.custom_name or None,
                guest_token=new_guest_token(),
                username=default_username(),
                added_at=utcnow(),
            )
            for item in guest_inputs
        ]

        async with self.locks.hold(event_key(event_id)):
            event = await self._load(event_id)
            self._check_owner(event, owner_id)
            if not new_guests:
                return []
            event.guests.extend(new_guests)
            await self._save(event)

        # Tokens become usable only once their index entry exists
        for guest in new_guests:
            await self.tokens.put(guest.guest_token, event_id, guest.id)

        logger.info(f"Added {len(new_guests)} guests to event {event_id}")
        return new_guests

    async def send_invitations(
        self,
        owner_id: str,
        event_id: str,
        card_image: Optional[str],
        message: str,
        invitation_type: InvitationType,
        origin: str,
    ) -> List[InvitationPayload]:
        """
        Prepare one addressed invitation per guest and mark the event sent.
        Nothing is delivered; callers hand the payloads to a messaging channel.
        """
        async with self.locks.hold(event_key(event_id)):
            event = await self._load(event_id)
            self._check_owner(event, owner_id)

            invitations = [
                self._build_invitation(guest, card_image, message, invitation_type, origin)
                for guest in event.guests
            ]

            if not event.invitations_sent:
                event.invitations_sent = True
                event.sent_at = utcnow()
            await self._save(event)

        logger.info(f"Prepared {len(invitations)} invitations for event {event_id}")
        return invitations

    @staticmethod
    def _build_invitation(
        guest: Guest,
        card_image: Optional[str],
        message: str,
        invitation_type: InvitationType,
        origin: str,
    ) -> InvitationPayload:
        text = guest.custom_message or message
        guest_name = None
        if invitation_type == InvitationType.CUSTOMIZED and guest.custom_name:
            guest_name = guest.custom_name
            text = text.replace(NAME_PLACEHOLDER, guest_name)

        return InvitationPayload(
            phone=guest.phone,
            link=guest_link(origin, guest.guest_token),
            card_image=card_image,
            message=text,
            guest_name=guest_name,
        )
