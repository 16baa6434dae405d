"""
Events API endpoints: creation, listing, guest roster and invitations.
"""
from fastapi import APIRouter, Depends, Request
from typing import Optional

from app.api.auth import get_current_sender, get_optional_sender
from app.api.deps import get_event_store
from app.core.config import settings
from app.core.exceptions import AuthorizationError, NotFoundError
from app.core.security import SenderIdentity
from app.schemas.events import AddGuestsRequest, EventCreate, SendInvitationsRequest
from app.services.event_store import EventStore

router = APIRouter()


@router.post("")
async def create_event(
    event_data: EventCreate,
    current_sender: SenderIdentity = Depends(get_current_sender),
    events: EventStore = Depends(get_event_store),
):
    """Create a new event owned by the current sender."""
    event = await events.create_event(
        owner_id=current_sender.user_id,
        name=event_data.name,
        occasion=event_data.occasion,
        description=event_data.description,
        date=event_data.date,
    )
    return {"event": event.to_document()}


@router.get("")
async def list_events(
    current_sender: SenderIdentity = Depends(get_current_sender),
    events: EventStore = Depends(get_event_store),
):
    """Get all events of the current sender."""
    owned = await events.list_events(current_sender.user_id)
    return {"events": [event.to_document() for event in owned]}


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    current_sender: Optional[SenderIdentity] = Depends(get_optional_sender),
    events: EventStore = Depends(get_event_store),
):
    """
    Get a single event.
    The owner sees the full document; everyone else the public view.
    """
    event = await events.get_event(event_id)
    if current_sender and current_sender.user_id == event.owner_id:
        return {"event": event.to_document()}
    return {"event": event.public_view()}


@router.post("/{event_id}/guests")
async def add_guests(
    event_id: str,
    request: AddGuestsRequest,
    current_sender: SenderIdentity = Depends(get_current_sender),
    events: EventStore = Depends(get_event_store),
):
    """Add guests to an event. Each guest gets its own access token."""
    try:
        guests = await events.add_guests(current_sender.user_id, event_id, request.guests)
    except AuthorizationError:
        # Do not reveal that someone else's event exists
        raise NotFoundError("Event not found or unauthorized")
    return {"guests": [guest.to_document() for guest in guests]}


@router.post("/{event_id}/send")
async def send_invitations(
    event_id: str,
    request: SendInvitationsRequest,
    http_request: Request,
    current_sender: SenderIdentity = Depends(get_current_sender),
    events: EventStore = Depends(get_event_store),
):
    """
    Prepare invitation messages for every guest.
    Delivery is left to the caller's messaging channel.
    """
    origin = http_request.headers.get("origin") or settings.APP_URL
    try:
        invitations = await events.send_invitations(
            owner_id=current_sender.user_id,
            event_id=event_id,
            card_image=request.card_image,
            message=request.message,
            invitation_type=request.invitation_type,
            origin=origin,
        )
    except AuthorizationError:
        raise NotFoundError("Event not found or unauthorized")

    return {
        "success": True,
        "invitations": [invitation.to_document() for invitation in invitations],
        "message": "Invitations prepared. Deliver them through your messaging channel.",
    }
