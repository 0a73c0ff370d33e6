"""
Events API endpoints for gathering listings.

Provides endpoints for:
- Listing events (approved only for the public, everything for admins)
- Calendar view of approved events with recurrences expanded
- Getting an event by GUID or slug, and its expanded schedule
- Submitting, editing and duplicating events

Design:
- Uses dependency injection for services
- The actor comes from the auth proxy headers (X-Actor-Id, X-Actor-Role)
- All endpoints use GUID format (evt_xxx) for identifiers
- RepositoryError is left to the application handler (503)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.db.repository import SqlEventRepository, SqlPastEventRepository
from backend.src.middleware.auth import Actor, get_actor, require_actor
from backend.src.schemas.event import (
    CalendarEntry,
    CalendarResponse,
    EditResponse,
    EventResponse,
    EventSubmit,
    EventUpdate,
    LifecycleResponse,
    OccurrencesResponse,
)
from backend.src.schemas.past_event import PastEventResponse
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Create EventService instance backed by the database session."""
    return EventService(SqlEventRepository(db), SqlPastEventRepository(db))


def _lifecycle_response(result: dict) -> LifecycleResponse:
    return LifecycleResponse(
        event=EventResponse.model_validate(result["event"]),
        message=result["message"],
    )


# ============================================================================
# Listing Endpoints (must be before /{event_id})
# ============================================================================


@router.get(
    "",
    response_model=List[EventResponse],
    summary="List events",
    description="Approved events for everyone; admins see all and may filter by status",
)
def list_events(
    status_filter: Optional[str] = Query(None, alias="status", description="pending, approved or completed"),
    actor: Optional[Actor] = Depends(get_actor),
    service: EventService = Depends(get_event_service),
) -> List[EventResponse]:
    """List events ordered by start."""
    try:
        events = service.list_events(actor, status=status_filter)
        return [EventResponse.model_validate(e) for e in events]
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get(
    "/calendar",
    response_model=CalendarResponse,
    summary="Calendar of approved events",
)
def get_calendar(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, description="1-12, requires year"),
    service: EventService = Depends(get_event_service),
) -> CalendarResponse:
    """
    Approved events with their dates, recurrences and multi-day spans
    expanded.

    Example:
        GET /api/events/calendar?year=2026&month=2
    """
    try:
        entries = service.get_calendar(year=year, month=month)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return CalendarResponse(
        year=year,
        month=month,
        entries=[
            CalendarEntry(event=EventResponse.model_validate(entry["event"]), dates=entry["dates"])
            for entry in entries
        ],
    )


@router.get(
    "/slug/{slug}",
    response_model=EventResponse,
    summary="Get event by slug",
)
def get_event_by_slug(
    slug: str,
    service: EventService = Depends(get_event_service),
) -> EventResponse:
    """Get an event by its public slug."""
    try:
        return EventResponse.model_validate(service.get_event_by_slug(slug))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event not found: {slug}")


# ============================================================================
# Single Event Endpoints
# ============================================================================


@router.get(
    "/{event_id}",
    response_model=EventResponse,
    summary="Get event",
)
def get_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
) -> EventResponse:
    """Get an event by GUID."""
    try:
        return EventResponse.model_validate(service.get_event(event_id))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event not found: {event_id}")


@router.get(
    "/{event_id}/occurrences",
    response_model=OccurrencesResponse,
    summary="Get event schedule",
)
def get_occurrences(
    event_id: str,
    service: EventService = Depends(get_event_service),
) -> OccurrencesResponse:
    """Every occurrence of an event, plus the days covered by multi-day spans."""
    try:
        schedule = service.get_occurrences(event_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event not found: {event_id}")

    return OccurrencesResponse(
        event_id=schedule["event"].id,
        label=schedule["label"],
        occurrences=schedule["occurrences"],
        dates=schedule["dates"],
    )


@router.post(
    "",
    response_model=LifecycleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit event",
)
def submit_event(
    request: EventSubmit,
    actor: Optional[Actor] = Depends(get_actor),
    service: EventService = Depends(get_event_service),
) -> LifecycleResponse:
    """
    Submit a new event.

    Anonymous and regular submissions wait for moderation unless
    EVENTS_REQUIRE_APPROVAL is false; admin submissions are published
    immediately.
    """
    try:
        result = service.submit_event(actor, request.model_dump(exclude_none=True))
        return _lifecycle_response(result)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put(
    "/{event_id}",
    response_model=EditResponse,
    summary="Edit event",
)
def edit_event(
    event_id: str,
    request: EventUpdate,
    actor: Actor = Depends(require_actor),
    service: EventService = Depends(get_event_service),
) -> EditResponse:
    """
    Edit an event (owner or admin).

    Edits by non-admins send the event back to moderation. A ``past_event``
    payload saves gallery media together with the edit.
    """
    past_event = request.past_event.model_dump(exclude_none=True) if request.past_event else None
    try:
        result = service.edit_event(event_id, actor, request.changed_fields(), past_event=past_event)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event not found: {event_id}")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info(f"Edited event {event_id}", extra={"actor_id": actor.id})

    return EditResponse(
        event=EventResponse.model_validate(result["event"]),
        past_event=(
            PastEventResponse.model_validate(result["past_event"])
            if result["past_event"] is not None else None
        ),
        message=result["message"],
    )


@router.post(
    "/{event_id}/duplicate",
    response_model=LifecycleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate event",
)
def duplicate_event(
    event_id: str,
    actor: Actor = Depends(require_actor),
    service: EventService = Depends(get_event_service),
) -> LifecycleResponse:
    """Copy an event into a new listing owned by the caller."""
    try:
        return _lifecycle_response(service.duplicate_event(event_id, actor))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Event not found: {event_id}")
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
