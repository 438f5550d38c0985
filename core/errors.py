"""
core/errors.py -- Error taxonomy shared by stores, services and routes.

Stores and services raise these; api/main.py registers one exception handler
that turns any PortfolioError into the JSON envelope
{"success": false, "message": ..., "errors": [...]}. Route handlers therefore
never build error responses by hand.

Layer rule: no imports from api/, auth/, content/ or client/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Violation:
    """One failed field rule: which field, and the human-readable reason."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class PortfolioError(Exception):
    """Base class for every expected failure. Carries its HTTP status."""

    status_code: int = 500
    code: str = "server_error"
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(PortfolioError):
    """A write payload broke one or more field rules.

    violations holds every broken rule, never just the first one.
    """

    status_code = 400
    code = "validation_failed"
    default_message = "Validation errors"

    def __init__(self, violations: list[Violation], message: str | None = None) -> None:
        self.violations = list(violations)
        super().__init__(message)


class InvalidId(PortfolioError):
    status_code = 400
    code = "invalid_id"
    default_message = "Invalid ID format"


class NotFound(PortfolioError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class InvalidCredentials(PortfolioError):
    # Same message for unknown email and wrong password.
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class Unauthorized(PortfolioError):
    status_code = 401
    code = "unauthorized"
    default_message = "Not authorized, token failed"


class TokenExpired(Unauthorized):
    code = "token_expired"
    default_message = "Not authorized, token expired"


class Forbidden(PortfolioError):
    status_code = 403
    code = "forbidden"
    default_message = "Not authorized as an admin"


class Conflict(PortfolioError):
    # Clients expect 400 for duplicates, not 409.
    status_code = 400
    code = "conflict"
    default_message = "Resource already exists"


class ServerError(PortfolioError):
    status_code = 500
    code = "server_error"
    default_message = "Server error"
