"""
Middleware components for the Meetboard backend.

This module provides:
- Actor: Dataclass representing the caller forwarded by the auth proxy
- get_actor: FastAPI dependency returning the Actor (or None when anonymous)
- require_actor: FastAPI dependency for requiring an identified actor
"""

from backend.src.middleware.auth import Actor, get_actor, require_actor

__all__ = [
    "Actor",
    "get_actor",
    "require_actor",
]
