"""
Actor identification for API routes.

Provides:
- Actor: Dataclass identifying who performs an operation
- get_actor: FastAPI dependency returning the Actor, or None for anonymous requests
- require_actor: FastAPI dependency that rejects anonymous requests

Credentials are verified by the authenticating proxy in front of the API,
which forwards the result as two headers:

    X-Actor-Id:   opaque user identifier
    X-Actor-Role: "admin" or "user" (anything else is treated as "user")

The Actor is passed explicitly into every service call; there is no
process-wide "current user".
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status


ROLE_ADMIN = "admin"
ROLE_USER = "user"
ACTOR_ROLES = (ROLE_ADMIN, ROLE_USER)


@dataclass(frozen=True)
class Actor:
    """
    Identity of the caller of a lifecycle operation.

    Attributes:
        id: User identifier, compared against an Event's created_by
        role: "admin" or "user"
    """

    id: str
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def owns(self, owner_id: Optional[str]) -> bool:
        """True if this actor is the given owner."""
        return owner_id is not None and self.id == owner_id


async def get_actor(
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> Optional[Actor]:
    """
    FastAPI dependency that reads the actor forwarded by the auth proxy.

    Returns:
        Actor, or None when the request carries no actor id
    """
    if not x_actor_id or not x_actor_id.strip():
        return None

    role = (x_actor_role or ROLE_USER).strip().lower()
    if role not in ACTOR_ROLES:
        role = ROLE_USER

    return Actor(id=x_actor_id.strip(), role=role)


async def require_actor(actor: Optional[Actor] = Depends(get_actor)) -> Actor:
    """
    FastAPI dependency that requires an identified actor.

    Raises:
        HTTPException 401: If the request carries no actor
    """
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return actor


__all__ = [
    "Actor",
    "ACTOR_ROLES",
    "ROLE_ADMIN",
    "ROLE_USER",
    "get_actor",
    "require_actor",
]
