"""
Repository interface and its backing stores.

The lifecycle and gallery services only need six operations per entity:
find_by_id, find_by_slug, get_all, create, update, delete. Two backings
implement them:

- SqlAlchemy repositories (PostgreSQL / MySQL / SQLite) for production
- JSON file repositories (one document per entity kind) for small
  deployments and fixtures

Both return storage-neutral records (backend.src.db.records) and both
enforce slug uniqueness themselves, raising SlugConflictError. That check is
the real backstop when several processes write concurrently; the services'
check-then-insert slug loops only avoid the collision in the common case.

Design Pattern: Strategy pattern for pluggable storage backends
"""

import json
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import fields as dataclass_fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.db.records import (
    EVENT_FIELDS,
    PAST_EVENT_FIELDS,
    EventRecord,
    PastEventRecord,
)
from backend.src.models import Event, PastEvent
from backend.src.schemas.recurrence import recurrence_from_dict, recurrence_to_dict
from backend.src.services.exceptions import (
    ConflictError,
    NotFoundError,
    RepositoryError,
    SlugConflictError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.utils.dates import utc_now
from backend.src.utils.logging_config import get_logger


logger = get_logger("db")

R = TypeVar("R")


class Repository(ABC, Generic[R]):
    """
    CRUD over one entity kind, keyed by GUID and by unique slug.

    Methods:
        find_by_id(): Record by GUID, or None
        find_by_slug(): Record by slug, or None
        get_all(): Every record, oldest first
        create(): Persist a new record; assigns id and audit timestamps
        update(): Apply a partial field set; None if the record is gone
        delete(): Remove a record; False if it was already gone
    """

    allowed_fields: frozenset = frozenset()

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[R]:
        pass

    @abstractmethod
    def find_by_slug(self, slug: str) -> Optional[R]:
        pass

    @abstractmethod
    def get_all(self) -> List[R]:
        pass

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> R:
        pass

    @abstractmethod
    def update(self, record_id: str, fields: Dict[str, Any]) -> Optional[R]:
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        pass

    def find_by(self, **criteria: Any) -> List[R]:
        """Records whose attributes equal every given criterion."""
        return [
            record for record in self.get_all()
            if all(getattr(record, key) == value for key, value in criteria.items())
        ]

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        """True if another record already uses ``slug``."""
        existing = self.find_by_slug(slug)
        return existing is not None and getattr(existing, "id") != exclude_id

    def _check_fields(self, fields: Dict[str, Any]) -> None:
        unknown = set(fields) - self.allowed_fields
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


# ============================================================================
# SQLAlchemy backing
# ============================================================================


class SqlAlchemyRepository(Repository[R]):
    """
    Repository over a SQLAlchemy model using GuidMixin.

    Every write commits; integrity errors on the slug index surface as
    SlugConflictError, any other database failure as RepositoryError.
    """

    model: Type = None

    def __init__(self, db: Session):
        """
        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self._pending_slug: Optional[str] = None

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig) if e.orig is not None else str(e)
            if "slug" in message.lower():
                raise SlugConflictError(self._pending_slug or "")
            logger.error(f"Integrity error during {action}: {message}")
            raise ConflictError(f"{self.model.__name__} {action} violates a database constraint")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during {action}: {e}", exc_info=True)
            raise RepositoryError(f"Could not {action} {self.model.__name__}", cause=e)

    def _get_row(self, record_id: str):
        try:
            uuid_value = self.model.parse_guid(record_id)
        except ValueError:
            return None
        return self.db.query(self.model).filter(self.model.uuid == uuid_value).first()

    def find_by_id(self, record_id: str) -> Optional[R]:
        with self._translate_errors("read"):
            row = self._get_row(record_id)
            return self._to_record(row) if row else None

    def find_by_slug(self, slug: str) -> Optional[R]:
        with self._translate_errors("read"):
            row = self.db.query(self.model).filter(self.model.slug == slug).first()
            return self._to_record(row) if row else None

    def get_all(self) -> List[R]:
        with self._translate_errors("read"):
            rows = self.db.query(self.model).order_by(self.model.id.asc()).all()
            return [self._to_record(row) for row in rows]

    def create(self, fields: Dict[str, Any]) -> R:
        self._check_fields(fields)
        self._pending_slug = fields.get("slug")
        with self._translate_errors("create"):
            row = self.model()
            self._apply(row, fields)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return self._to_record(row)

    def update(self, record_id: str, fields: Dict[str, Any]) -> Optional[R]:
        self._check_fields(fields)
        self._pending_slug = fields.get("slug")
        with self._translate_errors("update"):
            row = self._get_row(record_id)
            if row is None:
                return None
            self._apply(row, fields)
            row.updated_at = utc_now()
            self.db.commit()
            self.db.refresh(row)
            return self._to_record(row)

    def delete(self, record_id: str) -> bool:
        with self._translate_errors("delete"):
            row = self._get_row(record_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
            return True

    def _apply(self, row, fields: Dict[str, Any]) -> None:
        for key, value in fields.items():
            if isinstance(value, list):
                value = list(value)
            setattr(row, key, value)

    def _to_record(self, row) -> R:
        raise NotImplementedError


class SqlEventRepository(SqlAlchemyRepository[EventRecord]):
    """Events stored in the ``events`` table."""

    model = Event
    allowed_fields = EVENT_FIELDS

    def _apply(self, row: Event, fields: Dict[str, Any]) -> None:
        fields = dict(fields)
        if isinstance(fields.get("recurrence"), BaseModel):
            fields["recurrence"] = recurrence_to_dict(fields["recurrence"])
        super()._apply(row, fields)

    def _to_record(self, row: Event) -> EventRecord:
        return EventRecord(
            id=row.guid,
            slug=row.slug,
            title=row.title,
            description=row.description,
            city=row.city,
            state=row.state,
            location=row.location,
            contact_name=row.contact_name,
            contact_phone=row.contact_phone,
            contact_phone_secondary=row.contact_phone_secondary,
            contact_email=row.contact_email,
            start_at=row.start_at,
            end_at=row.end_at,
            status=row.status,
            recurrence=recurrence_from_dict(row.recurrence),
            website_url=row.website_url,
            live_url=row.live_url,
            cover_image=row.cover_image,
            images=list(row.images or []),
            featured=bool(row.featured),
            featured_until=row.featured_until,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class SqlPastEventRepository(SqlAlchemyRepository[PastEventRecord]):
    """Gallery records stored in the ``past_events`` table."""

    model = PastEvent
    allowed_fields = PAST_EVENT_FIELDS

    def find_by(self, **criteria: Any) -> List[PastEventRecord]:
        if set(criteria) == {"event_id"}:
            return self._find_by_event_guid(criteria["event_id"])
        return super().find_by(**criteria)

    def _find_by_event_guid(self, event_guid: Optional[str]) -> List[PastEventRecord]:
        with self._translate_errors("read"):
            query = self.db.query(PastEvent)
            if event_guid is None:
                query = query.filter(PastEvent.event_id.is_(None))
            else:
                try:
                    event_uuid = Event.parse_guid(event_guid)
                except ValueError:
                    return []
                query = query.join(PastEvent.event).filter(Event.uuid == event_uuid)
            return [self._to_record(row) for row in query.all()]

    def _apply(self, row: PastEvent, fields: Dict[str, Any]) -> None:
        fields = dict(fields)
        if "event_id" in fields:
            event_guid = fields.pop("event_id")
            if event_guid is None:
                row.event_id = None
            else:
                event_row = self._resolve_event(event_guid)
                row.event_id = event_row.id
        super()._apply(row, fields)

    def _resolve_event(self, event_guid: str) -> Event:
        try:
            event_uuid = Event.parse_guid(event_guid)
        except ValueError:
            raise NotFoundError("Event", event_guid)
        event_row = self.db.query(Event).filter(Event.uuid == event_uuid).first()
        if event_row is None:
            raise NotFoundError("Event", event_guid)
        return event_row

    def _to_record(self, row: PastEvent) -> PastEventRecord:
        return PastEventRecord(
            id=row.guid,
            slug=row.slug,
            event_id=row.event.guid if row.event is not None else None,
            title=row.title,
            city=row.city,
            state=row.state,
            date=row.date,
            images=list(row.images or []),
            videos=list(row.videos or []),
            description=row.description,
            attendance=row.attendance or 0,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


# ============================================================================
# JSON file backing
# ============================================================================


class JsonFileRepository(Repository[R]):
    """
    Repository persisted as a JSON array in a single file.

    Writes go to a temporary file that replaces the original, so a crash
    never leaves a half-written document. A process-local lock serializes
    read-modify-write cycles.
    """

    record_type: Type = None
    guid_prefix: str = None
    datetime_fields: tuple = ()
    unique_fields: tuple = ("slug",)

    def __init__(self, path: Path):
        """
        Args:
            path: JSON file location (created on first write)
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {self.path}: {e}")
            raise RepositoryError(f"Could not read {self.path.name}", cause=e)

    def _save(self, documents: List[Dict[str, Any]]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(documents, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to write {self.path}: {e}")
            raise RepositoryError(f"Could not write {self.path.name}", cause=e)

    @staticmethod
    def _encode(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, BaseModel):
            return recurrence_to_dict(value)
        if isinstance(value, list):
            return list(value)
        return value

    def _to_record(self, document: Dict[str, Any]) -> R:
        known = {f.name for f in dataclass_fields(self.record_type)}
        values = {key: value for key, value in document.items() if key in known}
        for name in self.datetime_fields:
            if values.get(name):
                values[name] = datetime.fromisoformat(values[name])
        if "recurrence" in known and "recurrence" in values:
            values["recurrence"] = recurrence_from_dict(values["recurrence"])
        return self.record_type(**values)

    def _check_unique(self, documents: List[Dict[str, Any]], candidate: Dict[str, Any]) -> None:
        for name in self.unique_fields:
            value = candidate.get(name)
            if value is None:
                continue
            for other in documents:
                if other["id"] != candidate["id"] and other.get(name) == value:
                    if name == "slug":
                        raise SlugConflictError(value)
                    raise ConflictError(f"{self.record_type.__name__} with {name}={value} already exists")

    def find_by_id(self, record_id: str) -> Optional[R]:
        for document in self._load():
            if document["id"] == record_id:
                return self._to_record(document)
        return None

    def find_by_slug(self, slug: str) -> Optional[R]:
        for document in self._load():
            if document.get("slug") == slug:
                return self._to_record(document)
        return None

    def get_all(self) -> List[R]:
        return [self._to_record(document) for document in self._load()]

    def create(self, fields: Dict[str, Any]) -> R:
        self._check_fields(fields)
        now = utc_now().isoformat()
        document = {key: self._encode(value) for key, value in fields.items()}
        document.update(
            id=GuidService.generate_guid(self.guid_prefix),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            documents = self._load()
            self._check_unique(documents, document)
            documents.append(document)
            self._save(documents)
        return self._to_record(document)

    def update(self, record_id: str, fields: Dict[str, Any]) -> Optional[R]:
        self._check_fields(fields)
        with self._lock:
            documents = self._load()
            for index, document in enumerate(documents):
                if document["id"] != record_id:
                    continue
                updated = dict(document)
                updated.update({key: self._encode(value) for key, value in fields.items()})
                updated["updated_at"] = utc_now().isoformat()
                self._check_unique(documents, updated)
                documents[index] = updated
                self._save(documents)
                return self._to_record(updated)
        return None

    def delete(self, record_id: str) -> bool:
        with self._lock:
            documents = self._load()
            remaining = [d for d in documents if d["id"] != record_id]
            if len(remaining) == len(documents):
                return False
            self._save(remaining)
        return True


class JsonEventRepository(JsonFileRepository[EventRecord]):
    """Events stored in ``events.json``."""

    record_type = EventRecord
    guid_prefix = "evt"
    datetime_fields = ("start_at", "end_at", "featured_until", "created_at", "updated_at")
    allowed_fields = EVENT_FIELDS


class JsonPastEventRepository(JsonFileRepository[PastEventRecord]):
    """Gallery records stored in ``past_events.json``."""

    record_type = PastEventRecord
    guid_prefix = "pev"
    datetime_fields = ("date", "created_at", "updated_at")
    unique_fields = ("slug", "event_id")
    allowed_fields = PAST_EVENT_FIELDS
