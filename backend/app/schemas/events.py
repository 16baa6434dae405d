"""
Event and guest documents, their projections and request bodies.
"""
import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from app.schemas.base import DocumentModel


class Occasion(str, Enum):
    WEDDING = "wedding"
    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"
    BABY_SHOWER = "baby shower"
    ENGAGEMENT = "engagement"
    GRADUATION = "graduation"
    HOUSEWARMING = "housewarming"
    FESTIVAL = "festival"
    RETIREMENT = "retirement"
    OTHER = "other"

    @classmethod
    def normalize(cls, value):
        """'Baby Shower', ' baby_shower ' -> 'baby shower'."""
        if isinstance(value, str):
            return " ".join(value.replace("_", " ").split()).lower()
        return value


class InvitationType(str, Enum):
    STANDARD = "standard"
    CUSTOMIZED = "customized"


# Stored documents

class Guest(DocumentModel):
    id: str
    phone: str
    custom_message: Optional[str] = None
    custom_name: Optional[str] = None
    guest_token: str
    username: str
    profile_photo: Optional[str] = None
    added_at: datetime.datetime

    def public_view(self) -> dict:
        """What other participants may see: no phone, no token."""
        return self.to_document(include={"id", "username", "profile_photo"})


class Event(DocumentModel):
    id: str
    owner_id: str
    name: str
    occasion: Occasion
    description: Optional[str] = None
    date: datetime.date
    guests: List[Guest] = []
    invitations_sent: bool = False
    sent_at: Optional[datetime.datetime] = None
    created_at: datetime.datetime

    @field_validator("occasion", mode="before")
    @classmethod
    def normalize_occasion(cls, v):
        return Occasion.normalize(v)

    def find_guest(self, guest_id: str) -> Optional[Guest]:
        return next((g for g in self.guests if g.id == guest_id), None)

    def public_view(self, include_guests: bool = True) -> dict:
        """Event fields safe for guests and anonymous readers."""
        doc = self.to_document(include={"id", "name", "occasion", "description", "date"})
        if include_guests:
            doc["guests"] = [g.public_view() for g in self.guests]
        return doc


class InvitationPayload(DocumentModel):
    phone: str
    link: str
    card_image: Optional[str] = None
    message: str
    guest_name: Optional[str] = None


# Request bodies

class EventCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=200)
    occasion: Occasion
    description: Optional[str] = None
    date: datetime.date

    @field_validator("occasion", mode="before")
    @classmethod
    def normalize_occasion(cls, v):
        return Occasion.normalize(v)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Sarah & John's Wedding",
                "occasion": "Wedding",
                "description": "Join us for the celebration",
                "date": "2026-06-20"
            }
        }
    )


class GuestInput(DocumentModel):
    phone: str = Field(..., min_length=1, max_length=32)
    custom_message: Optional[str] = None
    custom_name: Optional[str] = None


class AddGuestsRequest(DocumentModel):
    guests: List[GuestInput]


class SendInvitationsRequest(DocumentModel):
    card_image: Optional[str] = None
    message: str = ""
    invitation_type: InvitationType = InvitationType.STANDARD


class ProfileUpdate(DocumentModel):
    username: Optional[str] = Field(None, max_length=50)
    profile_photo: Optional[str] = None
