"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class PermissionDeniedError(ServiceError):
    """Raised when the actor lacks the privilege or ownership for an operation."""

    def __init__(self, message: str, actor_id: Optional[str] = None):
        self.message = message
        self.actor_id = actor_id
        super().__init__(message)


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SlugConflictError(ConflictError):
    """
    Raised by a repository when a write loses a slug uniqueness race.

    Services catch this and retry with a regenerated slug.
    """

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already taken")


class RepositoryError(ServiceError):
    """
    Raised when the persistence layer is unavailable or rejects a write.

    Distinct from ValidationError: the request was valid and may be retried.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
