"""
Gallery documents and request bodies.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, Field

from app.schemas.base import DocumentModel


class UserType(str, Enum):
    SENDER = "sender"
    GUEST = "guest"


class Like(DocumentModel):
    user_id: str
    username: str


class Comment(DocumentModel):
    id: str
    user_id: str
    username: str
    text: str
    created_at: datetime


class Image(DocumentModel):
    id: str
    file_name: str  # Stable blob path: {eventId}/{imageId}
    url: Optional[str] = None  # Signed on every read, never stored
    uploaded_by: str
    uploader_name: str
    uploader_type: UserType
    likes: List[Like] = []
    comments: List[Comment] = []
    uploaded_at: datetime

    def to_stored(self) -> dict:
        return self.to_document(exclude={"url"})


def load_gallery(doc) -> List[Image]:
    return [Image.from_document(item) for item in (doc or [])]


def dump_gallery(images: List[Image]) -> list:
    return [image.to_stored() for image in images]


# Request bodies

class UploadRequest(DocumentModel):
    image_data: str = Field(..., min_length=1)  # data URL or bare base64
    uploader_name: Optional[str] = None


class LikeRequest(DocumentModel):
    image_id: str
    username: Optional[str] = None


class CommentRequest(DocumentModel):
    image_id: str
    text: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        validation_alias=AliasChoices("text", "comment"),
    )
    username: Optional[str] = None
