"""
Guest API endpoints. The token in the path is the guest's credential.
"""
from fastapi import APIRouter, Depends

from app.api.deps import get_guest_directory
from app.schemas.events import ProfileUpdate
from app.services.guest_directory import GuestDirectory

router = APIRouter()


@router.get("/{token}")
async def resolve_guest(token: str, guests: GuestDirectory = Depends(get_guest_directory)):
    """Guest auto-login from an invitation link."""
    session = await guests.resolve_token(token)
    return {
        "eventId": session.event.id,
        "guestId": session.guest.id,
        "guest": session.guest.to_document(),
        "event": session.event.public_view(include_guests=False),
    }


@router.put("/{token}/profile")
async def update_profile(
    token: str,
    profile: ProfileUpdate,
    guests: GuestDirectory = Depends(get_guest_directory),
):
    """Update the guest's display name and/or profile photo."""
    guest = await guests.update_profile(
        token,
        username=profile.username,
        profile_photo=profile.profile_photo,
    )
    return {"guest": guest.to_document()}


@router.delete("/{token}")
async def delete_guest(token: str, guests: GuestDirectory = Depends(get_guest_directory)):
    """Remove the guest from its event and revoke the token."""
    await guests.delete_self(token)
    return {"success": True}
