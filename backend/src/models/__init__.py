"""
SQLAlchemy models for the Meetboard backend.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# Create the declarative base class
# All models will inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.event import Event, EventStatus
from backend.src.models.past_event import PastEvent

__all__ = [
    "Base",
    "Event",
    "EventStatus",
    "PastEvent",
]
