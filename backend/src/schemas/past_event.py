"""
Pydantic schemas for past-event (gallery) API request/response validation.

Request schemas are deliberately permissive: field rules such as the media
gate and video link checks are enforced by PastEventService so that they
apply to every caller, not only HTTP ones.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer


# ============================================================================
# Request Schemas
# ============================================================================


class PastEventMedia(BaseModel):
    """
    Gallery media payload.

    Omitted fields keep their current value when a gallery record is
    updated.
    """

    images: Optional[List[str]] = Field(default=None, description="Photo URLs")
    videos: Optional[List[str]] = Field(default=None, description="Video links (YouTube or http(s))")
    description: Optional[str] = Field(default=None)
    attendance: Optional[int] = Field(default=None, description="Number of attendees")

    model_config = {
        "json_schema_extra": {
            "example": {
                "images": ["https://cdn.example.com/uploads/spring-meet-1.jpg"],
                "videos": ["https://youtu.be/dQw4w9WgXcQ"],
                "attendance": 180,
            }
        }
    }


class PastEventCreate(PastEventMedia):
    """
    Schema for creating a gallery record.

    With event_id the linked Event provides title, location and date.
    Without it, title, city, state and date are required.
    """

    event_id: Optional[str] = Field(default=None, description="Source Event GUID (evt_xxx)")
    slug: Optional[str] = Field(default=None, max_length=255)
    title: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=120)
    state: Optional[str] = Field(default=None, max_length=60)
    date: Optional[str] = Field(default=None, description="ISO date or timestamp")


class PastEventUpdate(PastEventMedia):
    """Schema for updating a gallery record. All fields optional."""

    title: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=120)
    state: Optional[str] = Field(default=None, max_length=60)
    date: Optional[str] = Field(default=None, description="ISO date or timestamp")


# ============================================================================
# Response Schemas
# ============================================================================


class PastEventResponse(BaseModel):
    """Schema for gallery record API responses."""

    id: str = Field(..., description="PastEvent GUID (pev_xxx)")
    slug: str
    event_id: Optional[str] = Field(default=None, description="Source Event GUID, if any")
    title: str
    city: str
    state: str
    date: datetime
    images: List[str]
    videos: List[str]
    description: Optional[str]
    attendance: int
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z" if v else None

    model_config = {"from_attributes": True}
