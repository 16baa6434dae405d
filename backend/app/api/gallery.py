"""
Gallery API endpoints: upload, list, like, comment, delete.
"""
from fastapi import APIRouter, Depends

from app.api.auth import Participant, get_participant
from app.api.deps import get_gallery_store
from app.schemas.gallery import CommentRequest, LikeRequest, UploadRequest, UserType
from app.services.gallery_store import GalleryStore, decode_image_data

router = APIRouter()


def _display_name(participant: Participant, requested: str = None) -> str:
    # Guests always appear under their profile name
    if participant.user_type == UserType.SENDER and requested:
        return requested
    return participant.username


@router.post("/{event_id}/upload")
async def upload_image(
    event_id: str,
    request: UploadRequest,
    participant: Participant = Depends(get_participant),
    gallery: GalleryStore = Depends(get_gallery_store),
):
    """Upload an image (data URL or base64) to the event gallery."""
    data, content_type = decode_image_data(request.image_data)
    image = await gallery.upload(
        event_id,
        data,
        uploaded_by=participant.user_id,
        uploader_name=_display_name(participant, request.uploader_name),
        uploader_type=participant.user_type,
        content_type=content_type,
    )
    return {"image": image.to_document()}


@router.get("/{event_id}")
async def list_gallery(event_id: str, gallery: GalleryStore = Depends(get_gallery_store)):
    """List gallery images with freshly signed URLs."""
    images = await gallery.list(event_id)
    return {"gallery": [image.to_document() for image in images]}


@router.post("/{event_id}/like")
async def toggle_like(
    event_id: str,
    request: LikeRequest,
    participant: Participant = Depends(get_participant),
    gallery: GalleryStore = Depends(get_gallery_store),
):
    """Like an image, or remove the like if already present."""
    image = await gallery.toggle_like(
        event_id,
        request.image_id,
        user_id=participant.user_id,
        username=_display_name(participant, request.username),
    )
    return {"image": image.to_document()}


@router.post("/{event_id}/comment")
async def add_comment(
    event_id: str,
    request: CommentRequest,
    participant: Participant = Depends(get_participant),
    gallery: GalleryStore = Depends(get_gallery_store),
):
    comment = await gallery.add_comment(
        event_id,
        request.image_id,
        user_id=participant.user_id,
        username=_display_name(participant, request.username),
        text=request.text,
    )
    return {"comment": comment.to_document()}


@router.delete("/{event_id}/{image_id}")
async def delete_image(
    event_id: str,
    image_id: str,
    participant: Participant = Depends(get_participant),
    gallery: GalleryStore = Depends(get_gallery_store),
):
    """Delete an image. Owner can delete any image, guests only their own."""
    await gallery.delete(
        event_id,
        image_id,
        requester_id=participant.user_id,
        requester_type=participant.user_type,
        event=participant.event,
    )
    return {"success": True}
