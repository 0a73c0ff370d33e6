"""
Admin API module.

Contains endpoints for admin operations:
- Event moderation queue and actions (approve, complete, delete)
"""

from backend.src.api.admin.events import router as events_router

__all__ = ["events_router"]
