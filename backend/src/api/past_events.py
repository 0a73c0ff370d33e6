"""
Past Events API endpoints for the gallery of events that happened.

Provides endpoints for:
- Listing the gallery (runs the legacy materialization sweep first)
- Getting a gallery record by GUID or slug
- Creating, updating and deleting gallery records (admins)

Design:
- All endpoints use GUID format (pev_xxx) for identifiers
- A gallery record always carries at least one photo or video
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.db.repository import SqlEventRepository, SqlPastEventRepository
from backend.src.middleware.auth import Actor, get_actor
from backend.src.schemas.past_event import PastEventCreate, PastEventResponse, PastEventUpdate
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from backend.src.services.past_event_service import PastEventService
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/past-events",
    tags=["Past Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_past_event_service(db: Session = Depends(get_db)) -> PastEventService:
    """Create PastEventService instance backed by the database session."""
    return PastEventService(SqlPastEventRepository(db), SqlEventRepository(db))


# ============================================================================
# Read Endpoints
# ============================================================================


@router.get(
    "",
    response_model=List[PastEventResponse],
    summary="List past events",
)
def list_past_events(
    service: PastEventService = Depends(get_past_event_service),
) -> List[PastEventResponse]:
    """Gallery records, most recent first."""
    records = service.list_past_events()
    logger.info("Listed past events", extra={"count": len(records)})
    return [PastEventResponse.model_validate(r) for r in records]


@router.get(
    "/slug/{slug}",
    response_model=PastEventResponse,
    summary="Get past event by slug",
)
def get_past_event_by_slug(
    slug: str,
    service: PastEventService = Depends(get_past_event_service),
) -> PastEventResponse:
    """Get a gallery record by its public slug."""
    try:
        return PastEventResponse.model_validate(service.get_past_event_by_slug(slug))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Past event not found: {slug}")


@router.get(
    "/{past_event_id}",
    response_model=PastEventResponse,
    summary="Get past event",
)
def get_past_event(
    past_event_id: str,
    service: PastEventService = Depends(get_past_event_service),
) -> PastEventResponse:
    """Get a gallery record by GUID."""
    try:
        return PastEventResponse.model_validate(service.get_past_event(past_event_id))
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Past event not found: {past_event_id}",
        )


# ============================================================================
# Admin Endpoints
# ============================================================================


@router.post(
    "",
    response_model=PastEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create past event",
)
def create_past_event(
    request: PastEventCreate,
    actor: Optional[Actor] = Depends(get_actor),
    service: PastEventService = Depends(get_past_event_service),
) -> PastEventResponse:
    """
    Create a gallery record (admins).

    With ``event_id`` the linked Event is materialized with the given media;
    otherwise a purely historical entry is created.
    """
    try:
        record = service.create_past_event(actor, request.model_dump(exclude_none=True))
        return PastEventResponse.model_validate(record)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put(
    "/{past_event_id}",
    response_model=PastEventResponse,
    summary="Update past event",
)
def update_past_event(
    past_event_id: str,
    request: PastEventUpdate,
    actor: Optional[Actor] = Depends(get_actor),
    service: PastEventService = Depends(get_past_event_service),
) -> PastEventResponse:
    """Update a gallery record (admins). Omitted fields are kept."""
    try:
        record = service.update_past_event(actor, past_event_id, request.model_dump(exclude_none=True))
        return PastEventResponse.model_validate(record)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Past event not found: {past_event_id}",
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete(
    "/{past_event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete past event",
)
def delete_past_event(
    past_event_id: str,
    actor: Optional[Actor] = Depends(get_actor),
    service: PastEventService = Depends(get_past_event_service),
) -> None:
    """Delete a gallery record (admins)."""
    try:
        service.delete_past_event(actor, past_event_id)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Past event not found: {past_event_id}",
        )
