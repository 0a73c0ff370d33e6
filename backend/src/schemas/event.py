"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event submissions and edits
- Moderation actions
- Event API responses (with a human recurrence label)
- Occurrence and calendar views

Design:
- Request schemas accept raw strings for timestamps and a raw recurrence
  document; EventService validates them so its rules (date ordering,
  recurrence defaults, media hygiene) hold for every caller
- Event timestamps are wall-clock times at the venue and are serialized
  without a timezone; audit timestamps are UTC
- GUIDs (evt_xxx) are exposed as ``id``, never internal keys
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from backend.src.schemas.past_event import PastEventMedia, PastEventResponse
from backend.src.schemas.recurrence import recurrence_from_dict, recurrence_to_dict


# ============================================================================
# Request Schemas
# ============================================================================


class EventSubmit(BaseModel):
    """
    Schema for submitting a new event.

    Required (checked by the service):
        title, description, city, state, location, start_at,
        contact_name, contact_phone

    Recurrence examples:
        {"type": "weekly", "day_of_week": 6, "occurrence_count": 8}
        {"type": "monthly_weekday", "weekday": 0, "nth": 3}
        {"type": "specific", "dates": ["2026-05-02 09:00", "2026-06-06"]}
    """

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None, max_length=120)
    state: Optional[str] = Field(default=None, max_length=60)
    location: Optional[str] = Field(default=None, max_length=255)

    contact_name: Optional[str] = Field(default=None, max_length=255)
    contact_phone: Optional[str] = Field(default=None, max_length=64)
    contact_phone_secondary: Optional[str] = Field(default=None, max_length=64)
    contact_email: Optional[str] = Field(default=None, max_length=255)

    start_at: Optional[str] = Field(default=None, description="ISO timestamp, YYYY-MM-DD HH:MM or YYYY-MM-DD")
    end_at: Optional[str] = Field(default=None)
    recurrence: Optional[Dict[str, Any]] = Field(default=None)

    website_url: Optional[str] = Field(default=None, max_length=500)
    live_url: Optional[str] = Field(default=None, max_length=500, description="YouTube link")
    cover_image: Optional[str] = Field(default=None)
    images: Optional[List[str]] = Field(default=None)

    featured: Optional[bool] = Field(default=None, description="Admins only")
    featured_until: Optional[str] = Field(default=None, description="Admins only")

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Spring Meet",
                "description": "Monthly gathering of air-cooled classics",
                "city": "Campinas",
                "state": "SP",
                "location": "Parque Taquaral",
                "start_at": "2026-01-31T09:00:00",
                "contact_name": "Ana",
                "contact_phone": "+55 19 99999-0000",
                "recurrence": {"type": "monthly", "day_of_month": 31, "occurrence_count": 3},
                "images": ["https://cdn.example.com/uploads/spring-meet.jpg"],
            }
        }
    }


class EventUpdate(EventSubmit):
    """
    Schema for editing an event. All fields optional; omitted fields are
    left unchanged, explicit nulls clear optional fields.

    Admins may also set ``status``. ``past_event`` carries gallery media
    saved together with the edit.
    """

    status: Optional[str] = Field(default=None, description="pending, approved or completed (admins only)")
    past_event: Optional[PastEventMedia] = Field(default=None)

    def changed_fields(self) -> Dict[str, Any]:
        """Fields the client actually sent, without the gallery payload."""
        return self.model_dump(exclude_unset=True, exclude={"past_event"})


class ModerationActionRequest(BaseModel):
    """Schema for an admin moderation action."""

    action: str = Field(..., description="approve, complete or delete")


# ============================================================================
# Response Schemas
# ============================================================================


class EventResponse(BaseModel):
    """Schema for event API responses."""

    id: str = Field(..., description="Event GUID (evt_xxx)")
    slug: str
    title: str
    description: str
    city: str
    state: str
    location: str

    contact_name: str
    contact_phone: str
    contact_phone_secondary: Optional[str] = None
    contact_email: Optional[str] = None

    start_at: datetime
    end_at: Optional[datetime] = None
    recurrence: Dict[str, Any]
    recurrence_label: Optional[str] = None

    website_url: Optional[str] = None
    live_url: Optional[str] = None
    cover_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)

    status: str
    featured: bool = False
    featured_until: Optional[datetime] = None
    created_by: str

    created_at: datetime
    updated_at: datetime

    @field_validator("recurrence", mode="before")
    @classmethod
    def dump_recurrence(cls, v: Any) -> Any:
        """Accept the recurrence model stored on records."""
        if isinstance(v, BaseModel):
            return recurrence_to_dict(v)
        return v

    @model_validator(mode="after")
    def fill_recurrence_label(self) -> "EventResponse":
        # services.recurrence imports this package
        from backend.src.services.recurrence import format_recurrence, get_span_days

        if self.recurrence_label is None:
            spec = recurrence_from_dict(self.recurrence)
            self.recurrence_label = format_recurrence(spec, get_span_days(self.start_at, self.end_at))
        return self

    @field_serializer("created_at", "updated_at")
    @classmethod
    def serialize_datetime_utc(cls, v: datetime) -> str:
        """Serialize datetime as ISO 8601 with explicit UTC timezone."""
        return v.isoformat() + "Z" if v else None

    model_config = {"from_attributes": True}


class LifecycleResponse(BaseModel):
    """Result of a submission, moderation action or duplication."""

    event: EventResponse
    message: str


class EditResponse(BaseModel):
    """Result of an edit, including the gallery record when one was written."""

    event: EventResponse
    past_event: Optional[PastEventResponse] = None
    message: str


class OccurrencesResponse(BaseModel):
    """Expanded schedule of one event."""

    event_id: str
    label: str
    occurrences: List[datetime] = Field(..., description="One start per recurrence instance")
    dates: List[datetime] = Field(..., description="Every day covered, multi-day spans expanded")


class CalendarEntry(BaseModel):
    """One approved event and its dates inside the requested window."""

    event: EventResponse
    dates: List[datetime]


class CalendarResponse(BaseModel):
    """Calendar view of approved events."""

    year: Optional[int] = None
    month: Optional[int] = None
    entries: List[CalendarEntry]
