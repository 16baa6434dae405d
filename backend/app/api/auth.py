"""
Authentication dependencies.

Senders present `Authorization: Bearer <token>` issued by the identity
provider. Guests have no login: their guest token (in the path, or in the
`X-Guest-Token` header for gallery calls) is their whole credential.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.api.deps import get_event_store, get_guest_directory
from app.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from app.core.security import IdentityProvider, SenderIdentity, get_identity_provider
from app.schemas.events import Event
from app.schemas.gallery import UserType
from app.services.event_store import EventStore
from app.services.guest_directory import GuestDirectory

security = HTTPBearer(auto_error=False)

DEFAULT_SENDER_NAME = "Organizer"


@dataclass
class Participant:
    """The event owner or one of its guests, acting on the event's gallery."""
    user_id: str
    username: str
    user_type: UserType
    event: Event


async def get_current_sender(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> SenderIdentity:
    """Extract the sender from the bearer token."""
    if not credentials:
        raise AuthenticationError("Not authenticated")
    return identity.verify(credentials.credentials)


async def get_optional_sender(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Optional[SenderIdentity]:
    """Like get_current_sender, but anonymous callers get None."""
    if not credentials:
        return None
    try:
        return identity.verify(credentials.credentials)
    except AuthenticationError:
        return None


async def get_participant(
    event_id: str,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_guest_token: Optional[str] = Header(None),
    identity: IdentityProvider = Depends(get_identity_provider),
    events: EventStore = Depends(get_event_store),
    guests: GuestDirectory = Depends(get_guest_directory),
) -> Participant:
    """
    Resolve the caller of a gallery endpoint.

    A guest token must belong to a guest of `event_id`; a sender token must
    belong to the event's owner.
    """
    if x_guest_token:
        try:
            session = await guests.resolve_token(x_guest_token)
        except NotFoundError:
            raise AuthenticationError("Invalid guest token")
        if session.event.id != event_id:
            raise AuthorizationError("Not a guest of this event")
        return Participant(
            user_id=session.guest.id,
            username=session.guest.username,
            user_type=UserType.GUEST,
            event=session.event,
        )

    if credentials:
        sender = identity.verify(credentials.credentials)
        event = await events.get_event(event_id)
        if event.owner_id != sender.user_id:
            raise AuthorizationError("Not the owner of this event")
        return Participant(
            user_id=sender.user_id,
            username=sender.name or DEFAULT_SENDER_NAME,
            user_type=UserType.SENDER,
            event=event,
        )

    raise AuthenticationError("Not authenticated")
