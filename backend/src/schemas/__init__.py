"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.recurrence import (
    SingleRecurrence,
    WeeklyRecurrence,
    MonthlyRecurrence,
    MonthlyWeekdayRecurrence,
    AnnualRecurrence,
    SpecificRecurrence,
    RecurrenceSpec,
)
from backend.src.schemas.past_event import (
    PastEventMedia,
    PastEventCreate,
    PastEventUpdate,
    PastEventResponse,
)
from backend.src.schemas.event import (
    EventSubmit,
    EventUpdate,
    ModerationActionRequest,
    EventResponse,
    LifecycleResponse,
    EditResponse,
    OccurrencesResponse,
    CalendarEntry,
    CalendarResponse,
)

__all__ = [
    # Recurrence
    "SingleRecurrence",
    "WeeklyRecurrence",
    "MonthlyRecurrence",
    "MonthlyWeekdayRecurrence",
    "AnnualRecurrence",
    "SpecificRecurrence",
    "RecurrenceSpec",
    # Past events
    "PastEventMedia",
    "PastEventCreate",
    "PastEventUpdate",
    "PastEventResponse",
    # Events
    "EventSubmit",
    "EventUpdate",
    "ModerationActionRequest",
    "EventResponse",
    "LifecycleResponse",
    "EditResponse",
    "OccurrencesResponse",
    "CalendarEntry",
    "CalendarResponse",
]
