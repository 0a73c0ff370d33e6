"""
PastEvent model for the gallery of concluded gatherings.

A PastEvent is the durable historical record of a gathering that happened.
It is either materialized from an Event (at most one per Event) or created
directly for purely historical entries with no live Event.

Design Rationale:
- Slug namespace is independent from Event slugs
- event_id is unique: a second materialization updates the first record
- Deleting the source Event detaches the gallery record (SET NULL)
- Title/location/date are a snapshot, refreshed on re-materialization
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin
from backend.src.utils.dates import utc_now


class PastEvent(Base, GuidMixin):
    """
    Gallery record model.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (pev_xxx, inherited from GuidMixin)
        slug: Unique URL slug
        event_id: FK to the source Event (NULL for historical entries)
        title, city, state, date: Snapshot of the gathering
        images: Ordered list of photo URLs
        videos: Ordered list of external video links
        description: Free text
        attendance: Head count (non-negative)
        created_at, updated_at: Audit timestamps

    Constraints:
        - event_id unique (one gallery record per Event)
        - images or videos non-empty (enforced by the service layer)
    """

    __tablename__ = "past_events"

    GUID_PREFIX = "pev"

    id = Column(Integer, primary_key=True, autoincrement=True)

    slug = Column(String(255), nullable=False, unique=True, index=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )

    title = Column(String(255), nullable=False)
    city = Column(String(120), nullable=False)
    state = Column(String(60), nullable=False)
    date = Column(DateTime, nullable=False, index=True)

    images = Column(JSON, nullable=False, default=list)
    videos = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=True)
    attendance = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    event = relationship("Event", back_populates="past_event")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<PastEvent("
            f"id={self.id}, "
            f"slug='{self.slug}', "
            f"event_id={self.event_id}, "
            f"date={self.date}"
            f")>"
        )
