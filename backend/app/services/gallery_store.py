"""
Gallery store: the per-event image list at `gallery:{eventId}`.

All images of an event share one document, so every gallery mutation
(append, like toggle, comment, removal) is serialized on the gallery key.
Blob uploads and deletes always run before or after that lock, never inside.
"""
import base64
import binascii
import datetime
import logging
import re
from typing import List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import (
    AuthorizationError,
    DependentStoreError,
    NotFoundError,
    ValidationError,
)
from app.core.locks import LockTable
from app.schemas.events import Event
from app.schemas.gallery import Comment, Image, Like, UserType, dump_gallery, load_gallery
from app.services.identity import new_id
from app.services.kv_store import KeyValueStore, event_key, gallery_key
from app.services.signed_urls import with_signed_url, with_signed_urls
from app.services.storage_interface import StorageInterface

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[^,]*)?;base64,(?P<data>.*)$", re.DOTALL)


def decode_image_data(image_data: str) -> Tuple[bytes, str]:
    """
    Decode a `data:<mime>;base64,...` URL or bare base64 string.

    Returns:
        (raw bytes, content type)
    """
    content_type = "image/jpeg"
    payload = image_data.strip()
    match = DATA_URL_RE.match(payload)
    if match:
        content_type = match.group("mime") or content_type
        payload = match.group("data")
    elif payload.startswith("data:"):
        raise ValidationError("Image data must be base64 encoded")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image data is not valid base64")
    return data, content_type


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def blob_path(event_id: str, image_id: str) -> str:
    return f"{event_id}/{image_id}"


def _find_image(images: List[Image], image_id: str) -> Image:
    for image in images:
        if image.id == image_id:
            return image
    raise NotFoundError("Image not found")


class GalleryStore:
    def __init__(
        self,
        kv: KeyValueStore,
        locks: LockTable,
        storage: StorageInterface,
        url_ttl: int = None,
    ):
        self.kv = kv
        self.locks = locks
        self.storage = storage
        self.url_ttl = url_ttl or settings.SIGNED_URL_TTL_SECONDS

    async def _load_event(self, event_id: str) -> Event:
        doc = await self.kv.get(event_key(event_id))
        if not doc:
            raise NotFoundError("Event not found")
        return Event.from_document(doc)

    async def _read(self, event_id: str) -> List[Image]:
        return load_gallery(await self.kv.get(gallery_key(event_id)))

    async def _write(self, event_id: str, images: List[Image]) -> None:
        await self.kv.set(gallery_key(event_id), dump_gallery(images))

    async def upload(
        self,
        event_id: str,
        data: bytes,
        uploaded_by: str,
        uploader_name: str,
        uploader_type: UserType,
        content_type: str = "image/jpeg",
    ) -> Image:
        if not data:
            raise ValidationError("Image is empty")
        if len(data) > settings.max_file_size_bytes:
            raise ValidationError(f"Image exceeds {settings.MAX_FILE_SIZE_MB} MB")

        await self._load_event(event_id)

        image_id = new_id()
        file_name = blob_path(event_id, image_id)
        try:
            await run_in_threadpool(self.storage.upload_bytes, data, file_name, content_type)
        except Exception as e:
            logger.error(f"Blob upload failed for {file_name}: {e}")
            raise DependentStoreError("Image upload failed") from e

        image = Image(
            id=image_id,
            file_name=file_name,
            uploaded_by=uploaded_by,
            uploader_name=uploader_name,
            uploader_type=uploader_type,
            likes=[],
            comments=[],
            uploaded_at=utcnow(),
        )

        try:
            async with self.locks.hold(gallery_key(event_id)):
                images = await self._read(event_id)
                images.append(image)
                await self._write(event_id, images)
        except Exception:
            await self._delete_blob(file_name)
            raise

        logger.info(f"Uploaded image {image_id} to event {event_id} ({len(data)} bytes)")
        return await with_signed_url(self.storage, image, self.url_ttl)

    async def list(self, event_id: str) -> List[Image]:
        return await with_signed_urls(self.storage, await self._read(event_id), self.url_ttl)

    async def toggle_like(self, event_id: str, image_id: str, user_id: str, username: str) -> Image:
        async with self.locks.hold(gallery_key(event_id)):
            images = await self._read(event_id)
            image = _find_image(images, image_id)

            likes = {like.user_id: like for like in image.likes}
            if user_id in likes:
                del likes[user_id]
            else:
                likes[user_id] = Like(user_id=user_id, username=username)
            image.likes = list(likes.values())

            await self._write(event_id, images)
        return await with_signed_url(self.storage, image, self.url_ttl)

    async def add_comment(self, event_id: str, image_id: str, user_id: str, username: str, text: str) -> Comment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment must not be blank")

        async with self.locks.hold(gallery_key(event_id)):
            images = await self._read(event_id)
            image = _find_image(images, image_id)

            comment = Comment(
                id=new_id(),
                user_id=user_id,
                username=username,
                text=text,
                created_at=utcnow(),
            )
            image.comments.append(comment)
            await self._write(event_id, images)
        return comment

    async def delete(
        self,
        event_id: str,
        image_id: str,
        requester_id: str,
        requester_type: UserType,
        event: Optional[Event] = None,
    ) -> None:
        """
        Remove an image. Allowed for the event owner and for the uploader.
        The blob is deleted best-effort; the gallery document decides what
        the gallery contains.
        """
        image = _find_image(await self._read(event_id), image_id)

        is_owner = False
        if requester_type == UserType.SENDER:
            event = event or await self._load_event(event_id)
            is_owner = event.owner_id == requester_id
        if not is_owner and image.uploaded_by != requester_id:
            raise AuthorizationError("Only the event owner or the uploader can delete this image")

        await self._delete_blob(image.file_name)

        async with self.locks.hold(gallery_key(event_id)):
            images = await self._read(event_id)
            _find_image(images, image_id)
            await self._write(event_id, [img for img in images if img.id != image_id])

        logger.info(f"Deleted image {image_id} from event {event_id}")

    async def _delete_blob(self, file_name: str) -> None:
        try:
            await run_in_threadpool(self.storage.delete_file, file_name)
        except Exception as e:
            logger.warning(f"Blob delete failed for {file_name}: {e}")
