"""Error taxonomy shared by the domain, services and HTTP layer."""

from __future__ import annotations


class PennywiseError(Exception):
    """Base class for all domain errors."""

    status_code = 400

    def __init__(self, message: str, *, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_dict(self) -> dict:
        payload: dict = {"error": type(self).__name__, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PennywiseError, ValueError):
    """Invalid amounts, malformed allocations or contribution data."""

    status_code = 400


class OwnershipError(PennywiseError, LookupError):
    """A referenced category or transaction is missing or owned by another user."""

    status_code = 403


class StateError(PennywiseError):
    """Operation not allowed in the aggregate's current state."""

    status_code = 409


class NotFoundError(PennywiseError, LookupError):
    """Requested budget or goal does not exist for this user."""

    status_code = 404
