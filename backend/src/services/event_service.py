"""
Event service: the listing lifecycle.

Provides submission, editing, moderation actions, duplication and the read
side (listings, occurrences, calendar) for gathering listings.

Design:
- States: pending -> approved -> completed; admins may delete in any state
- Submissions from admins, or with moderation disabled, are approved at once
- Any edit by a non-admin sends the event back to pending for review
- Completing an event materializes its gallery record (PastEventService)
- Every error is raised before anything is persisted, except a failed
  gallery update after an edit, which is logged and reported as partial
  success
- The actor is passed into every call; nothing reads a "current user"
"""

import enum
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from backend.src.config.settings import AppSettings, get_settings
from backend.src.db.records import EventRecord, PastEventRecord
from backend.src.db.repository import Repository
from backend.src.middleware.auth import Actor
from backend.src.models.event import EventStatus
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    SlugConflictError,
    ValidationError,
)
from backend.src.services.past_event_service import PastEventService, clean_media_payload
from backend.src.services.recurrence import (
    format_recurrence,
    generate_event_dates,
    generate_occurrences,
    get_span_days,
    normalize_recurrence,
)
from backend.src.utils.dates import parse_timestamp
from backend.src.utils.logging_config import get_logger
from backend.src.utils.media import clean_media_list, is_inline_data, normalize_youtube_url
from backend.src.utils.slugs import fallback_slug, sequential_candidates, slugify


logger = get_logger("services")

ANONYMOUS_OWNER = "anonymous"

REQUIRED_FIELDS = (
    "title",
    "description",
    "city",
    "state",
    "location",
    "start_at",
    "contact_name",
    "contact_phone",
)

_REQUIRED_TEXT = tuple(name for name in REQUIRED_FIELDS if name != "start_at")
_OPTIONAL_TEXT = ("contact_phone_secondary", "contact_email", "website_url")

# Copied by duplicate_event
_DESCRIPTIVE_FIELDS = _REQUIRED_TEXT + _OPTIONAL_TEXT + (
    "start_at",
    "end_at",
    "recurrence",
    "live_url",
    "cover_image",
    "images",
)


class ModerationAction(str, enum.Enum):
    """Admin actions on an event."""
    APPROVE = "approve"
    COMPLETE = "complete"
    DELETE = "delete"


class EventService:
    """
    Service for the event lifecycle.

    Usage:
        >>> service = EventService(events_repo, past_events_repo)
        >>> result = service.submit_event(actor, {"title": "Spring Meet", ...})
        >>> result["event"].status
        'pending'
    """

    def __init__(
        self,
        events: Repository[EventRecord],
        past_events: Repository[PastEventRecord],
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize event service.

        Args:
            events: Event repository
            past_events: PastEvent repository
            settings: Application settings (defaults to get_settings())
        """
        self.events = events
        self.settings = settings or get_settings()
        self.gallery = PastEventService(past_events, events, self.settings)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_event(self, event_id: str) -> EventRecord:
        """
        Raises:
            NotFoundError: If the event does not exist
        """
        event = self.events.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def get_event_by_slug(self, slug: str) -> EventRecord:
        """
        Raises:
            NotFoundError: If no event has this slug
        """
        event = self.events.find_by_slug(slug)
        if event is None:
            raise NotFoundError("Event", slug)
        return event

    def list_events(
        self,
        actor: Optional[Actor] = None,
        status: Optional[str] = None,
    ) -> List[EventRecord]:
        """
        List events ordered by start.

        Admins see every event and may filter by status; everyone else sees
        approved events only.

        Raises:
            ValidationError: Unknown status filter
        """
        if status is not None:
            status = self._parse_status(status)

        if actor is not None and actor.is_admin:
            events = self.events.get_all()
            if status is not None:
                events = [e for e in events if e.status == status]
        else:
            events = self.events.find_by(status=EventStatus.APPROVED.value)

        return sorted(events, key=lambda e: e.start_at)

    def list_pending(self, actor: Optional[Actor]) -> List[EventRecord]:
        """
        Moderation queue, oldest submission first.

        Raises:
            PermissionDeniedError: Actor is not an admin
        """
        self._require_admin(actor, "Only administrators can review pending events")
        pending = self.events.find_by(status=EventStatus.PENDING.value)
        return sorted(pending, key=lambda e: e.created_at)

    def get_occurrences(self, event_id: str) -> Dict[str, Any]:
        """
        Expanded schedule of an event.

        Returns:
            Dict with ``event``, ``occurrences`` (one per recurrence instance),
            ``dates`` (occurrences expanded over a multi-day span) and a
            human ``label``
        """
        event = self.get_event(event_id)
        span = get_span_days(event.start_at, event.end_at)
        return {
            "event": event,
            "occurrences": generate_occurrences(event.start_at, event.recurrence),
            "dates": generate_event_dates(event.start_at, event.recurrence, event.end_at),
            "label": format_recurrence(event.recurrence, span),
        }

    def get_calendar(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Approved events with their expanded dates.

        Args:
            year: Restrict to one year
            month: Restrict to one month of ``year`` (1-12)

        Returns:
            List of ``{"event": EventRecord, "dates": [...]}``, ordered by
            first date; events without dates in the window are omitted

        Raises:
            ValidationError: Month out of range, or month given without year
        """
        if month is not None:
            if year is None:
                raise ValidationError("A month filter requires a year", field="year")
            if not 1 <= month <= 12:
                raise ValidationError("Month must be between 1 and 12", field="month")

        entries = []
        for event in self.events.find_by(status=EventStatus.APPROVED.value):
            dates = generate_event_dates(event.start_at, event.recurrence, event.end_at)
            if year is not None:
                dates = [d for d in dates if d.year == year]
            if month is not None:
                dates = [d for d in dates if d.month == month]
            if dates:
                entries.append({"event": event, "dates": dates})

        return sorted(entries, key=lambda entry: entry["dates"][0])

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit_event(self, actor: Optional[Actor], fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an event from a submission.

        Args:
            actor: Submitting actor, or None for an anonymous submission
            fields: Event fields (everything except id, status, timestamps)

        Returns:
            Dict with the created ``event`` and a ``message``

        Raises:
            ValidationError: Missing or invalid fields
            ConflictError: No free slug within SLUG_MAX_ATTEMPTS
        """
        for name in REQUIRED_FIELDS:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Field '{name}' is required", field=name)

        record: Dict[str, Any] = {name: fields[name].strip() for name in _REQUIRED_TEXT}
        for name in _OPTIONAL_TEXT:
            record[name] = self._optional_text(fields.get(name))

        start_at = self._parse_datetime(fields["start_at"], "start_at")
        end_at = self._parse_datetime(fields.get("end_at"), "end_at")
        self._check_date_order(start_at, end_at)
        record["start_at"] = start_at
        record["end_at"] = end_at
        record["recurrence"] = normalize_recurrence(fields.get("recurrence"), start_at)

        record["images"] = clean_media_list(fields.get("images"))
        record["cover_image"] = self._cover_image(fields.get("cover_image"), record["images"])
        record["live_url"] = self._live_url(fields.get("live_url"))

        if actor is not None and actor.is_admin:
            record.update(self._featured_fields(fields, start_at))
        else:
            record["featured"] = False
            record["featured_until"] = None

        record["status"] = self._initial_status(actor)
        record["created_by"] = actor.id if actor is not None else ANONYMOUS_OWNER

        event = self._write_with_unique_slug(
            record["title"],
            lambda slug: self.events.create({**record, "slug": slug}),
        )

        logger.info(f"Submitted event {event.slug} ({event.id}) as {event.status} by {event.created_by}")
        if event.status == EventStatus.PENDING.value:
            message = "Event submitted and awaiting approval"
        else:
            message = "Event published"
        return {"event": event, "message": message}

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def edit_event(
        self,
        event_id: str,
        actor: Optional[Actor],
        fields: Dict[str, Any],
        past_event: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Apply a partial update to an event.

        Args:
            event_id: Event GUID
            actor: Acting user (admin or the event's owner)
            fields: Fields to change; absent keys are left alone
            past_event: Optional gallery payload (images, videos, description,
                attendance) saved alongside the edit

        Returns:
            Dict with the updated ``event``, the ``past_event`` (None when no
            gallery record was written) and a ``message``

        Raises:
            NotFoundError: Event does not exist
            PermissionDeniedError: Actor is neither admin nor owner
            ValidationError: Invalid fields or completion media gate failed
        """
        event = self.get_event(event_id)
        if actor is None or not (actor.is_admin or actor.owns(event.created_by)):
            raise PermissionDeniedError(
                "Only the owner or an administrator can edit this event",
                actor_id=actor.id if actor else None,
            )

        changes = self._collect_changes(event, actor, fields)
        media_payload = clean_media_payload(past_event) if past_event is not None else None

        candidate = replace(event, **changes)
        completing = candidate.status == EventStatus.COMPLETED.value
        resolved = self.gallery.resolve_media(candidate, media_payload)
        if completing and not resolved.present:
            raise ValidationError(
                "A completed event needs at least one photo or video",
                field="images",
            )

        if "title" in changes and changes["title"] != event.title:
            updated = self._write_with_unique_slug(
                changes["title"],
                lambda slug: self.events.update(event_id, {**changes, "slug": slug}),
                exclude_id=event_id,
            )
        else:
            updated = self.events.update(event_id, changes)
        if updated is None:
            raise NotFoundError("Event", event_id)

        logger.info(f"Edited event {updated.slug} ({updated.id}) by {actor.id}, status {updated.status}")

        gallery_record = None
        message = "Event updated"
        if not actor.is_admin:
            message = "Event updated and sent back for review"

        if resolved.present and (completing or media_payload is not None):
            try:
                gallery_record = self.gallery.materialize(updated, media_payload)
                message = f"{message}; gallery saved"
            except ServiceError as e:
                logger.error(
                    f"Event {updated.id} was updated but its gallery record was not: {e}",
                    exc_info=True,
                )
                message = f"{message}, but the gallery could not be updated"

        return {"event": updated, "past_event": gallery_record, "message": message}

    def _collect_changes(
        self,
        event: EventRecord,
        actor: Actor,
        fields: Dict[str, Any],
    ) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}

        for name in _REQUIRED_TEXT:
            if fields.get(name) is None:
                continue
            value = str(fields[name]).strip()
            if not value:
                raise ValidationError(f"Field '{name}' cannot be empty", field=name)
            changes[name] = value

        for name in _OPTIONAL_TEXT:
            if name in fields:
                changes[name] = self._optional_text(fields[name])

        start_at = event.start_at
        if fields.get("start_at") is not None:
            start_at = self._parse_datetime(fields["start_at"], "start_at")
            if start_at is None:
                raise ValidationError("Field 'start_at' is required", field="start_at")
            changes["start_at"] = start_at
        end_at = event.end_at
        if "end_at" in fields:
            end_at = self._parse_datetime(fields["end_at"], "end_at")
            changes["end_at"] = end_at
        self._check_date_order(start_at, end_at)

        if "recurrence" in fields:
            changes["recurrence"] = normalize_recurrence(fields["recurrence"], start_at)

        images = event.images
        if fields.get("images") is not None:
            images = clean_media_list(fields["images"])
            changes["images"] = images
        if "cover_image" in fields:
            changes["cover_image"] = self._cover_image(fields["cover_image"], images)
        elif "images" in changes and event.cover_image not in images:
            changes["cover_image"] = images[0] if images else None

        if "live_url" in fields:
            changes["live_url"] = self._live_url(fields["live_url"])

        if actor.is_admin:
            if fields.get("status") is not None:
                changes["status"] = self._parse_status(fields["status"])
            if "featured" in fields or "featured_until" in fields:
                changes.update(self._featured_fields(
                    {"featured": fields.get("featured", event.featured),
                     "featured_until": fields.get("featured_until", event.featured_until)},
                    start_at,
                ))
        else:
            changes["status"] = EventStatus.PENDING.value

        return changes

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    def apply_action(self, event_id: str, actor: Optional[Actor], action: Any) -> Dict[str, Any]:
        """
        Apply a moderation action (admin only).

        - approve: status becomes approved
        - complete: media gate, materialize the gallery record, then status
          becomes completed; safe to retry
        - delete: remove the event; its gallery record is kept, detached

        Returns:
            Dict with the ``event`` (the deleted record for delete) and a
            ``message``

        Raises:
            PermissionDeniedError: Actor is not an admin
            ValidationError: Unknown action, or media gate failed
            NotFoundError: Event does not exist
        """
        self._require_admin(actor, "Only administrators can moderate events")
        try:
            action = ModerationAction(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action}", field="action")

        event = self.get_event(event_id)

        if action == ModerationAction.APPROVE:
            updated = self._set_status(event, EventStatus.APPROVED)
            logger.info(f"Approved event {updated.slug} ({updated.id}) by {actor.id}")
            return {"event": updated, "message": "Event approved"}

        if action == ModerationAction.COMPLETE:
            if not self.gallery.resolve_media(event).present:
                raise ValidationError(
                    "A completed event needs at least one photo or video",
                    field="images",
                )
            past_event = self.gallery.materialize(event)
            updated = self._set_status(event, EventStatus.COMPLETED)
            logger.info(
                f"Completed event {updated.slug} ({updated.id}) by {actor.id}, "
                f"gallery {past_event.slug}"
            )
            return {"event": updated, "message": "Event completed and added to the gallery"}

        linked = self.gallery.find_for_event(event.id)
        if linked is not None:
            self.gallery.past_events.update(linked.id, {"event_id": None})
        if not self.events.delete(event.id):
            raise NotFoundError("Event", event_id)
        logger.info(f"Deleted event {event.slug} ({event.id}) by {actor.id}")
        return {"event": event, "message": "Event deleted"}

    def _set_status(self, event: EventRecord, status: EventStatus) -> EventRecord:
        updated = self.events.update(event.id, {"status": status.value})
        if updated is None:
            raise NotFoundError("Event", event.id)
        return updated

    # ------------------------------------------------------------------
    # Duplicate
    # ------------------------------------------------------------------

    def duplicate_event(self, event_id: str, actor: Optional[Actor]) -> Dict[str, Any]:
        """
        Copy an event into a new listing titled "<title> (copy)".

        The copy is owned by ``actor``, is never featured, gets its status as
        a fresh submission would, and has no gallery record.

        Raises:
            NotFoundError: Event does not exist
            PermissionDeniedError: Actor is neither admin nor owner
        """
        source = self.get_event(event_id)
        if actor is None or not (actor.is_admin or actor.owns(source.created_by)):
            raise PermissionDeniedError(
                "Only the owner or an administrator can duplicate this event",
                actor_id=actor.id if actor else None,
            )

        record = {name: getattr(source, name) for name in _DESCRIPTIVE_FIELDS}
        record["title"] = f"{source.title} (copy)"
        record["images"] = list(source.images)
        record["featured"] = False
        record["featured_until"] = None
        record["status"] = self._initial_status(actor)
        record["created_by"] = actor.id

        copy = self._write_with_unique_slug(
            record["title"],
            lambda slug: self.events.create({**record, "slug": slug}),
        )
        logger.info(f"Duplicated event {source.id} as {copy.slug} ({copy.id}) by {actor.id}")
        return {"event": copy, "message": "Event duplicated"}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, actor: Optional[Actor], message: str) -> None:
        if actor is None or not actor.is_admin:
            raise PermissionDeniedError(message, actor_id=actor.id if actor else None)

    def _initial_status(self, actor: Optional[Actor]) -> str:
        if (actor is not None and actor.is_admin) or not self.settings.events_require_approval:
            return EventStatus.APPROVED.value
        return EventStatus.PENDING.value

    @staticmethod
    def _parse_status(value: Any) -> str:
        try:
            return EventStatus(value).value
        except ValueError:
            raise ValidationError(f"Unknown status: {value}", field="status")

    @staticmethod
    def _parse_datetime(value: Any, field_name: str) -> Optional[datetime]:
        try:
            return parse_timestamp(value)
        except ValueError:
            raise ValidationError(f"Invalid date for '{field_name}': {value}", field=field_name)

    @staticmethod
    def _check_date_order(start_at: datetime, end_at: Optional[datetime]) -> None:
        if end_at is not None and end_at < start_at:
            raise ValidationError("End date cannot be before the start date", field="end_at")

    @staticmethod
    def _optional_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip() or None

    @staticmethod
    def _cover_image(value: Any, images: List[str]) -> Optional[str]:
        if isinstance(value, str) and is_inline_data(value):
            raise ValidationError(
                "Cover image must be an uploaded image URL, not inline data",
                field="cover_image",
            )
        cover = value.strip() if isinstance(value, str) else ""
        if cover:
            return cover
        return images[0] if images else None

    @staticmethod
    def _live_url(value: Any) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        normalized = normalize_youtube_url(str(value))
        if normalized is None:
            raise ValidationError("Live stream link must be a YouTube URL", field="live_url")
        return normalized

    def _featured_fields(self, fields: Dict[str, Any], start_at: datetime) -> Dict[str, Any]:
        if not fields.get("featured"):
            return {"featured": False, "featured_until": None}
        featured_until = self._parse_datetime(fields.get("featured_until"), "featured_until")
        if featured_until is None:
            featured_until = start_at + timedelta(days=self.settings.featured_default_days)
        return {"featured": True, "featured_until": featured_until}

    def _allocate_slug(self, base: str, exclude_id: Optional[str]) -> str:
        for candidate in sequential_candidates(base):
            if not self.events.slug_exists(candidate, exclude_id=exclude_id):
                return candidate

    def _write_with_unique_slug(
        self,
        title: str,
        write: Callable[[str], Optional[EventRecord]],
        exclude_id: Optional[str] = None,
    ) -> Optional[EventRecord]:
        """
        Run ``write`` with the first free slug for ``title``.

        A SlugConflictError means another writer took the slug between the
        check and the write; the next attempt re-checks and moves on.
        """
        base = slugify(title) or fallback_slug()
        for _ in range(self.settings.slug_max_attempts):
            slug = self._allocate_slug(base, exclude_id)
            try:
                return write(slug)
            except SlugConflictError:
                logger.warning(f"Event slug '{slug}' taken concurrently, retrying")
        raise ConflictError(f"Could not allocate a unique slug for '{base}'")
