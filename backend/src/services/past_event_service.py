"""
Past-event service: the gallery of events that actually happened.

Provides materialization of completed events into PastEvent records, the
passive sweep for legacy completed events, and admin management of purely
historical entries.

Design:
- At most one PastEvent per source Event (upsert keyed by event_id)
- Media gate: a PastEvent always carries at least one image or video
- Gallery slugs live in their own namespace; collisions get a random suffix
- Snapshot fields (title, city, state, date) are refreshed from the Event on
  every materialization; media, description and attendance are merged
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

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
from backend.src.utils.dates import parse_timestamp
from backend.src.utils.logging_config import get_logger
from backend.src.utils.media import clean_media_list, merge_media, normalize_video_url
from backend.src.utils.slugs import fallback_slug, random_candidate, slugify


logger = get_logger("services")

_MEDIA_KEYS = ("images", "videos", "description", "attendance")
_SNAPSHOT_KEYS = ("title", "city", "state", "date")


@dataclass
class ResolvedMedia:
    """Media a PastEvent would carry after a materialization."""
    images: List[str] = field(default_factory=list)
    videos: List[str] = field(default_factory=list)

    @property
    def present(self) -> bool:
        return bool(self.images or self.videos)


def clean_video_list(values: Optional[List[Any]]) -> List[str]:
    """
    Validate and normalize external video links.

    Raises:
        ValidationError: If an entry is not an http(s) URL
    """
    videos: List[str] = []
    for value in values or []:
        if not isinstance(value, str) or not value.strip():
            continue
        normalized = normalize_video_url(value)
        if normalized is None:
            raise ValidationError(f"Invalid video URL: {value}", field="videos")
        if normalized not in videos:
            videos.append(normalized)
    return videos


def clean_media_payload(media: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Normalize a gallery media payload.

    Only keys that were supplied (not None) are returned, so callers can
    tell "keep the existing value" from "replace it".

    Raises:
        ValidationError: Invalid video link or negative attendance
    """
    cleaned: Dict[str, Any] = {}
    if not media:
        return cleaned

    if media.get("images") is not None:
        cleaned["images"] = clean_media_list(media["images"])
    if media.get("videos") is not None:
        cleaned["videos"] = clean_video_list(media["videos"])
    if media.get("description") is not None:
        cleaned["description"] = str(media["description"]).strip() or None
    if media.get("attendance") is not None:
        try:
            attendance = int(media["attendance"])
        except (TypeError, ValueError):
            raise ValidationError("Attendance must be a whole number", field="attendance")
        if attendance < 0:
            raise ValidationError("Attendance cannot be negative", field="attendance")
        cleaned["attendance"] = attendance
    return cleaned


class PastEventService:
    """
    Service for the past-event gallery.

    Usage:
        >>> service = PastEventService(past_events_repo, events_repo)
        >>> past_event = service.materialize(event, {"videos": ["https://youtu.be/..."]})
    """

    def __init__(
        self,
        past_events: Repository[PastEventRecord],
        events: Repository[EventRecord],
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize past-event service.

        Args:
            past_events: PastEvent repository
            events: Event repository (read for materialization and the sweep)
            settings: Application settings (defaults to get_settings())
        """
        self.past_events = past_events
        self.events = events
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_for_event(self, event_id: str) -> Optional[PastEventRecord]:
        """The PastEvent materialized from ``event_id``, if any."""
        matches = self.past_events.find_by(event_id=event_id)
        return matches[0] if matches else None

    def get_past_event(self, past_event_id: str) -> PastEventRecord:
        """
        Raises:
            NotFoundError: If the PastEvent does not exist
        """
        record = self.past_events.find_by_id(past_event_id)
        if record is None:
            raise NotFoundError("PastEvent", past_event_id)
        return record

    def get_past_event_by_slug(self, slug: str) -> PastEventRecord:
        """
        Raises:
            NotFoundError: If no PastEvent has this slug
        """
        record = self.past_events.find_by_slug(slug)
        if record is None:
            raise NotFoundError("PastEvent", slug)
        return record

    def list_past_events(self) -> List[PastEventRecord]:
        """
        All gallery records, most recent first.

        Runs the legacy sweep first when PAST_EVENT_SWEEP_ENABLED is set.
        """
        if self.settings.past_event_sweep_enabled:
            self.sweep_completed_events()
        records = self.past_events.get_all()
        return sorted(records, key=lambda r: r.date, reverse=True)

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def resolve_media(
        self,
        event: EventRecord,
        media: Optional[Dict[str, Any]] = None,
        existing: Optional[PastEventRecord] = None,
    ) -> ResolvedMedia:
        """
        Media a materialization of ``event`` would produce.

        Each field is the payload's if supplied, else the existing PastEvent's,
        else (images only) the Event's own images.
        """
        payload = clean_media_payload(media)
        if existing is None:
            existing = self.find_for_event(event.id)

        if "images" in payload:
            images = payload["images"]
        elif existing is not None and existing.images:
            images = existing.images
        else:
            images = clean_media_list(event.images)

        if "videos" in payload:
            videos = payload["videos"]
        elif existing is not None:
            videos = existing.videos
        else:
            videos = []

        return ResolvedMedia(images=merge_media(images), videos=list(videos))

    def materialize(
        self,
        event: EventRecord,
        media: Optional[Dict[str, Any]] = None,
    ) -> PastEventRecord:
        """
        Create or update the PastEvent for ``event``.

        Args:
            event: Source Event
            media: Optional payload with images, videos, description, attendance

        Returns:
            The created or updated PastEvent

        Raises:
            ValidationError: Media gate failed or payload invalid
            ConflictError: No free gallery slug within SLUG_MAX_ATTEMPTS
        """
        payload = clean_media_payload(media)
        existing = self.find_for_event(event.id)
        resolved = self.resolve_media(event, payload, existing)

        if not resolved.present:
            raise ValidationError(
                "A past event needs at least one photo or video",
                field="images",
            )

        fields: Dict[str, Any] = {
            "title": event.title,
            "city": event.city,
            "state": event.state,
            "date": event.start_at,
            "images": resolved.images,
            "videos": resolved.videos,
        }

        if existing is not None:
            fields["description"] = payload.get(
                "description", existing.description or event.description
            )
            fields["attendance"] = payload.get("attendance", existing.attendance)
            updated = self.past_events.update(existing.id, fields)
            if updated is None:
                raise NotFoundError("PastEvent", existing.id)
            logger.info(f"Updated past event {updated.slug} ({updated.id}) from event {event.id}")
            return updated

        fields["event_id"] = event.id
        fields["description"] = payload.get("description", event.description)
        fields["attendance"] = payload.get("attendance", 0)
        created = self._create_with_unique_slug(event.slug or event.title, fields)
        logger.info(f"Materialized event {event.id} as past event {created.slug} ({created.id})")
        return created

    def sweep_completed_events(self) -> List[PastEventRecord]:
        """
        Materialize completed events that never got a gallery record.

        Compatibility path for events completed before materialization ran
        synchronously on the ``complete`` action. Only events whose start has
        elapsed and that carry images qualify. Running it again is a no-op.

        Returns:
            PastEvents created by this sweep
        """
        now = datetime.now()
        linked = {r.event_id for r in self.past_events.get_all() if r.event_id}

        created: List[PastEventRecord] = []
        for event in self.events.get_all():
            if (
                event.status != EventStatus.COMPLETED.value
                or event.start_at > now
                or not clean_media_list(event.images)
                or event.id in linked
            ):
                continue
            try:
                created.append(self.materialize(event))
            except ServiceError as e:
                logger.error(f"Sweep could not materialize event {event.id}: {e}", exc_info=True)

        if created:
            logger.info(f"Past-event sweep materialized {len(created)} event(s)")
        return created

    # ------------------------------------------------------------------
    # Admin management
    # ------------------------------------------------------------------

    def create_past_event(self, actor: Optional[Actor], fields: Dict[str, Any]) -> PastEventRecord:
        """
        Create a gallery record (admin only).

        With ``event_id`` the Event must exist and the call materializes it
        with the supplied media. Without it, a purely historical entry is
        created from ``title``, ``city``, ``state`` and ``date``.

        Raises:
            PermissionDeniedError: Actor is not an admin
            NotFoundError: event_id given but the Event does not exist
            ValidationError: Missing fields, bad date or media gate failed
        """
        self._require_admin(actor)

        event_id = fields.get("event_id")
        if event_id:
            event = self.events.find_by_id(event_id)
            if event is None:
                raise NotFoundError("Event", event_id)
            return self.materialize(event, {k: fields.get(k) for k in _MEDIA_KEYS})

        for name in _SNAPSHOT_KEYS:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"Field '{name}' is required", field=name)

        record_fields = {
            "title": fields["title"].strip(),
            "city": fields["city"].strip(),
            "state": fields["state"].strip(),
            "date": self._parse_date(fields["date"]),
            "event_id": None,
        }
        payload = clean_media_payload({k: fields.get(k) for k in _MEDIA_KEYS})
        record_fields["images"] = payload.get("images", [])
        record_fields["videos"] = payload.get("videos", [])
        record_fields["description"] = payload.get("description")
        record_fields["attendance"] = payload.get("attendance", 0)
        self._check_media_gate(record_fields["images"], record_fields["videos"])

        created = self._create_with_unique_slug(fields.get("slug") or record_fields["title"], record_fields)
        logger.info(f"Created historical past event {created.slug} ({created.id}) by {actor.id}")
        return created

    def update_past_event(
        self,
        actor: Optional[Actor],
        past_event_id: str,
        fields: Dict[str, Any],
    ) -> PastEventRecord:
        """
        Update a gallery record (admin only).

        Raises:
            PermissionDeniedError: Actor is not an admin
            NotFoundError: PastEvent does not exist
            ValidationError: Bad date or the merged record has no media
        """
        self._require_admin(actor)
        current = self.get_past_event(past_event_id)

        changes: Dict[str, Any] = {}
        for name in ("title", "city", "state"):
            value = fields.get(name)
            if value is not None:
                if not str(value).strip():
                    raise ValidationError(f"Field '{name}' cannot be empty", field=name)
                changes[name] = str(value).strip()
        if fields.get("date") is not None:
            changes["date"] = self._parse_date(fields["date"])
        changes.update(clean_media_payload({k: fields.get(k) for k in _MEDIA_KEYS}))

        self._check_media_gate(
            changes.get("images", current.images),
            changes.get("videos", current.videos),
        )

        if not changes:
            return current

        updated = self.past_events.update(past_event_id, changes)
        if updated is None:
            raise NotFoundError("PastEvent", past_event_id)
        logger.info(f"Updated past event {updated.slug} ({updated.id}) by {actor.id}")
        return updated

    def delete_past_event(self, actor: Optional[Actor], past_event_id: str) -> None:
        """
        Delete a gallery record (admin only).

        Raises:
            PermissionDeniedError: Actor is not an admin
            NotFoundError: PastEvent does not exist
        """
        self._require_admin(actor)
        if not self.past_events.delete(past_event_id):
            raise NotFoundError("PastEvent", past_event_id)
        logger.info(f"Deleted past event {past_event_id} by {actor.id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, actor: Optional[Actor]) -> None:
        if actor is None or not actor.is_admin:
            raise PermissionDeniedError(
                "Only administrators can manage past events",
                actor_id=actor.id if actor else None,
            )

    @staticmethod
    def _check_media_gate(images: List[str], videos: List[str]) -> None:
        if not images and not videos:
            raise ValidationError(
                "A past event needs at least one photo or video",
                field="images",
            )

    @staticmethod
    def _parse_date(value: Any) -> datetime:
        try:
            parsed = parse_timestamp(value)
        except ValueError:
            raise ValidationError(f"Invalid date: {value}", field="date")
        if parsed is None:
            raise ValidationError("Field 'date' is required", field="date")
        return parsed

    def _create_with_unique_slug(self, source: str, fields: Dict[str, Any]) -> PastEventRecord:
        """
        Insert with a gallery slug derived from ``source``.

        Each attempt re-checks existence first; a SlugConflictError from the
        repository (a concurrent writer took the slug) triggers a new attempt.
        """
        base = slugify(source) or fallback_slug("past-event")
        candidate = base
        for _ in range(self.settings.slug_max_attempts):
            while self.past_events.slug_exists(candidate):
                candidate = random_candidate(base)
            try:
                return self.past_events.create({**fields, "slug": candidate})
            except SlugConflictError:
                logger.warning(f"Gallery slug '{candidate}' taken concurrently, retrying")
                candidate = random_candidate(base)
        raise ConflictError(f"Could not allocate a unique slug for '{base}'")
