"""
Error kinds raised by the catalog and configuration services.

Each carries the HTTP status the transport layer answers with.
"""
from typing import Optional


class BuildCostError(Exception):
    """Base class for expected, caller-recoverable failures."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BuildCostError):
    """Malformed or empty input."""

    status_code = 400


class AuthenticationError(BuildCostError):
    """No actor identity on an entry point that needs one."""

    status_code = 401

    def __init__(self, message: str = "You are not logged in. Please log in to get access.") -> None:
        super().__init__(message)


class ForbiddenError(BuildCostError):
    """Authenticated, but not allowed to touch this resource."""

    status_code = 403


class NotFoundError(BuildCostError):
    """A referenced entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[int] = None) -> None:
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} with ID {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ExternalRenderError(BuildCostError):
    """The document renderer failed."""

    status_code = 502
