"""
Service layer for business logic.

Service classes live in their own modules and are imported from there
(backend.src.services.event_service, backend.src.services.past_event_service).
The repository layer depends on the exceptions exported here, so this
package must not import the service modules eagerly.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ValidationError,
    PermissionDeniedError,
    ConflictError,
    SlugConflictError,
    RepositoryError,
)
from backend.src.services.guid import GuidService

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "PermissionDeniedError",
    "ConflictError",
    "SlugConflictError",
    "RepositoryError",
    "GuidService",
]
