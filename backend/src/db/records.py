"""
Storage-neutral entity records.

Repositories return these dataclasses whatever their backing store, so the
services never touch ORM instances or raw JSON documents. Field names match
the keys accepted by Repository.create/update.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from backend.src.schemas.recurrence import RecurrenceSpec, SingleRecurrence


@dataclass
class EventRecord:
    """A gathering listing as seen by the services."""

    id: str
    slug: str
    title: str
    description: str
    city: str
    state: str
    location: str
    contact_name: str
    contact_phone: str
    start_at: datetime
    status: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    end_at: Optional[datetime] = None
    recurrence: RecurrenceSpec = field(default_factory=SingleRecurrence)
    contact_phone_secondary: Optional[str] = None
    contact_email: Optional[str] = None
    website_url: Optional[str] = None
    live_url: Optional[str] = None
    cover_image: Optional[str] = None
    images: List[str] = field(default_factory=list)
    featured: bool = False
    featured_until: Optional[datetime] = None


@dataclass
class PastEventRecord:
    """A gallery record as seen by the services."""

    id: str
    slug: str
    title: str
    city: str
    state: str
    date: datetime
    created_at: datetime
    updated_at: datetime
    event_id: Optional[str] = None
    images: List[str] = field(default_factory=list)
    videos: List[str] = field(default_factory=list)
    description: Optional[str] = None
    attendance: int = 0


EVENT_FIELDS = frozenset(
    name for name in EventRecord.__dataclass_fields__
    if name not in ("id", "created_at", "updated_at")
)

PAST_EVENT_FIELDS = frozenset(
    name for name in PastEventRecord.__dataclass_fields__
    if name not in ("id", "created_at", "updated_at")
)
