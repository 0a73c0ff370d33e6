"""
Admin Events API endpoints for moderation.

Provides the moderation queue and the approve / complete / delete actions.
All endpoints require an admin actor; the service enforces it and the
endpoints translate PermissionDeniedError to 403.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from backend.src.api.events import get_event_service
from backend.src.middleware.auth import Actor, require_actor
from backend.src.schemas.event import EventResponse, LifecycleResponse, ModerationActionRequest
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/events", tags=["Admin - Events"])


# ============================================================================
# Moderation Endpoints (Admin Only)
# ============================================================================


@router.get("/pending", response_model=List[EventResponse])
def list_pending_events(
    actor: Actor = Depends(require_actor),
    service: EventService = Depends(get_event_service),
):
    """
    Moderation queue, oldest submission first.

    **Requires admin role.**
    """
    try:
        return [EventResponse.model_validate(e) for e in service.list_pending(actor)]
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.post("/{event_id}/action", response_model=LifecycleResponse)
def apply_moderation_action(
    event_id: str,
    request: ModerationActionRequest,
    actor: Actor = Depends(require_actor),
    service: EventService = Depends(get_event_service),
):
    """
    Apply a moderation action to an event.

    **Requires admin role.**

    - **approve**: publish the event
    - **complete**: add the event to the past-event gallery (needs at least
      one photo or video) and mark it completed
    - **delete**: remove the event; its gallery record is kept
    """
    try:
        result = service.apply_action(event_id, actor, request.action)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Event not found: {event_id}")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        "Admin applied moderation action",
        extra={
            "event": f"admin.event.{request.action}",
            "actor_id": actor.id,
            "event_id": event_id,
        }
    )

    return LifecycleResponse(
        event=EventResponse.model_validate(result["event"]),
        message=result["message"],
    )
