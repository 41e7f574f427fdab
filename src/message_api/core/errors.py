"""Project-wide custom exceptions.

This module centralizes domain-specific exception types so that routers and
services can raise / catch them without importing deep infrastructure errors
like ``asyncpg``, ``httpx`` or raw SQLAlchemy exceptions.

The public error surface maps onto four HTTP outcomes:

* ``MessageValidationError`` -> 400
* ``MessageNotFoundError``   -> 404 (absent *or* malformed id)
* ``UnauthorizedError``      -> 401 (uniform, non-revealing detail)
* ``DependencyError``        -> 500 (details logged, never echoed)
"""
from __future__ import annotations

# Sent for every 401 so a caller cannot tell "denied" from "does not exist".
UNAUTHORIZED_DETAIL = "Unauthorized"


class MessageApiError(Exception):
    """Base class for all custom project exceptions.

    Subclass this rather than ``Exception`` directly for new domain errors.
    """


class MessageValidationError(MessageApiError):
    """Raised when a candidate message misses required fields.

    ``missing`` maps each missing field name to a short reason and is
    returned to the caller as-is.
    """
    def __init__(self, missing: dict[str, str]):
        self.missing = dict(missing)
        super().__init__("Missing required properties: " + ", ".join(sorted(self.missing)))


class MessageNotFoundError(MessageApiError):
    pass


class UnauthorizedError(MessageApiError):
    def __init__(self, reason: str = "denied"):
        self.reason = reason
        super().__init__(UNAUTHORIZED_DETAIL)


class DependencyError(MessageApiError):
    """Raised when a backing service (store, policy, profiles) fails.

    ``dependency`` names the collaborator as reported by ``/status``.
    """
    def __init__(self, dependency: str, detail: str | None = None):
        self.dependency = dependency
        message = f"Dependency '{dependency}' failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class PolicyUnavailableError(DependencyError):
    """The permission service could not produce a decision."""
    def __init__(self, detail: str | None = None):
        super().__init__("policy", detail)


__all__ = [
    "UNAUTHORIZED_DETAIL",
    "MessageApiError",
    "MessageValidationError",
    "MessageNotFoundError",
    "UnauthorizedError",
    "DependencyError",
    "PolicyUnavailableError",
]
