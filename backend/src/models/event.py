"""
Event model for gathering listings.

Events represent public listings of one-off or recurring gatherings. They
move through a moderation lifecycle (pending -> approved -> completed) and,
once concluded, are materialized into a PastEvent gallery record.

Design Rationale:
- Slug is unique and derived from the title (public URLs)
- Recurrence is stored as a JSON document discriminated by its "type" key
- Media is an ordered JSON list of public URLs
- Timestamps are wall-clock times at the venue (no tz conversion)
- Hard delete only, by administrators
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, JSON, Index
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.utils.dates import utc_now


class EventStatus(enum.Enum):
    """Moderation status of an event."""
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"


class Event(Base, GuidMixin):
    """
    Gathering listing model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (evt_xxx, inherited from GuidMixin)

        Core Fields:
            slug: Unique URL slug derived from the title
            title: Event title
            description: Event description
            city, state, location: Where the gathering happens

        Contact Fields:
            contact_name, contact_phone: Required organizer contact
            contact_phone_secondary, contact_email: Optional contact

        Time Fields:
            start_at: Start timestamp (anchor for recurrence)
            end_at: Optional end timestamp (>= start_at)
            recurrence: Recurrence document ({"type": "weekly", ...})

        Media:
            cover_image: Cover image URL
            images: Ordered list of image URLs
            website_url, live_url: External links

        Moderation:
            status: pending, approved or completed
            featured, featured_until: Homepage highlight (admin only)
            created_by: Owner actor id ("anonymous" for guest submissions)

        Timestamps:
            created_at: Creation timestamp
            updated_at: Last update timestamp

    Relationships:
        past_event: Gallery record materialized from this event (one-to-one)
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    slug = Column(String(255), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    city = Column(String(120), nullable=False)
    state = Column(String(60), nullable=False)
    location = Column(String(255), nullable=False)

    contact_name = Column(String(255), nullable=False)
    contact_phone = Column(String(64), nullable=False)
    contact_phone_secondary = Column(String(64), nullable=True)
    contact_email = Column(String(255), nullable=True)

    start_at = Column(DateTime, nullable=False, index=True)
    end_at = Column(DateTime, nullable=True)
    recurrence = Column(JSON, nullable=False, default=lambda: {"type": "single"})

    website_url = Column(String(500), nullable=True)
    live_url = Column(String(500), nullable=True)
    cover_image = Column(String(500), nullable=True)
    images = Column(JSON, nullable=False, default=list)

    status = Column(String(20), default=EventStatus.PENDING.value, nullable=False, index=True)
    featured = Column(Boolean, default=False, nullable=False)
    featured_until = Column(DateTime, nullable=True)
    created_by = Column(String(64), nullable=False, default="anonymous", index=True)

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    past_event = relationship(
        "PastEvent",
        back_populates="event",
        uselist=False,
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_events_status_start", "status", "start_at"),
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Event("
            f"id={self.id}, "
            f"slug='{self.slug}', "
            f"start_at={self.start_at}, "
            f"status={self.status}"
            f")>"
        )

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"{self.title} - {self.start_at}"
