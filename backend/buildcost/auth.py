"""
Actor identity supplied by the upstream authentication gateway.

Credentials are verified before requests reach this service; the gateway
forwards the caller's user id and role in trusted headers. Nothing here
checks passwords or tokens.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from buildcost.config import settings
from buildcost.errors import AuthenticationError

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Who is making the call. `id` is None for anonymous callers."""

    id: Optional[int] = None
    role: Role = Role.USER

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == Role.ADMIN


ANONYMOUS = Actor()


def actor_from_headers(user_id: Optional[str], role: Optional[str]) -> Actor:
    """Build an actor from raw header values."""
    if not user_id:
        return ANONYMOUS

    try:
        parsed_id = int(user_id)
    except ValueError:
        logger.warning(f"[Auth] Rejected non-numeric user id header: {user_id!r}")
        raise AuthenticationError("Invalid user identity")

    try:
        parsed_role = Role(role.lower()) if role else Role.USER
    except ValueError:
        logger.warning(f"[Auth] Unknown role {role!r} for user {parsed_id}, treating as user")
        parsed_role = Role.USER

    return Actor(id=parsed_id, role=parsed_role)


async def get_actor(request: Request) -> Actor:
    """
    FastAPI dependency resolving the calling actor.

    Usage:
        @router.get("/")
        async def route(actor: Actor = Depends(get_actor)):
            ...
    """
    return actor_from_headers(
        request.headers.get(settings.USER_ID_HEADER),
        request.headers.get(settings.USER_ROLE_HEADER),
    )
