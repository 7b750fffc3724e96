"""
Authorization checks for owned resources.

Every read/update/delete/export of a configuration goes through
`authorize`, so ownership rules live in one place.
"""
import enum
import logging
from typing import Optional

from buildcost.auth import Actor
from buildcost.errors import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    READ_OWN = "read-own"
    WRITE_OWN = "write-own"
    READ_ANY = "read-any"
    WRITE_ANY = "write-any"
    READ_PUBLIC = "read-public"


OWNER_SCOPED = {Capability.READ_OWN, Capability.WRITE_OWN}


def is_allowed(
    actor: Actor,
    resource_owner_id: Optional[int],
    capability: Capability,
    is_public: bool = False,
) -> bool:
    """Pure predicate behind `authorize`."""
    if actor.is_admin:
        return True
    if (
        capability in OWNER_SCOPED
        and actor.is_authenticated
        and actor.id == resource_owner_id
    ):
        return True
    if capability == Capability.READ_PUBLIC and is_public:
        return True
    return False


def authorize(
    actor: Actor,
    resource_owner_id: Optional[int],
    capability: Capability,
    is_public: bool = False,
) -> None:
    """
    Raise ForbiddenError unless `actor` holds `capability` on the resource.

    Args:
        actor: Calling actor (may be anonymous)
        resource_owner_id: User id stored on the resource
        capability: What the caller wants to do
        is_public: Whether the resource is shared publicly
    """
    if not is_allowed(actor, resource_owner_id, capability, is_public):
        logger.info(
            f"[Access] Denied {capability.value} for actor={actor.id} "
            f"on resource owned by {resource_owner_id}"
        )
        raise ForbiddenError("You do not have permission to perform this action")


def authorize_read(actor: Actor, resource_owner_id: int, is_public: bool) -> None:
    """Owner, admin, or anyone at all when the resource is public."""
    if is_public:
        authorize(actor, resource_owner_id, Capability.READ_PUBLIC, is_public=True)
    elif actor.is_admin:
        authorize(actor, resource_owner_id, Capability.READ_ANY)
    else:
        authorize(actor, resource_owner_id, Capability.READ_OWN)


def authorize_write(actor: Actor, resource_owner_id: int) -> None:
    capability = Capability.WRITE_ANY if actor.is_admin else Capability.WRITE_OWN
    authorize(actor, resource_owner_id, capability)


def require_authenticated(actor: Actor) -> None:
    if not actor.is_authenticated:
        raise AuthenticationError()


def require_admin(actor: Actor) -> None:
    require_authenticated(actor)
    if not actor.is_admin:
        raise ForbiddenError("You do not have permission to perform this action")
