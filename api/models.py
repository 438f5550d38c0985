"""
API response models for the portfolio REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
content/models.py, which own the internal domain representation. Route
handlers map between the two.

Every response body, success or failure, is an envelope:
    {"success": bool, "message"?: str, "data"?: ..., "errors"?: [...], "count"?: int}

Request bodies are modeled in core/validation.py, not here. Routes take the
raw JSON object and hand it to parse_body() there, so the stores and the CLI
share the same request models and every violation is reported in one
response with the project's own messages.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from auth.models import User

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ViolationModel(BaseModel):
    """One failed field rule."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    code: str
    message: str
    errors: Optional[list[ViolationModel]] = None
    # Internal exception text; only populated when DEBUG=true.
    detail: Optional[str] = None


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Sanitized projection of a User. There is no password field, by construction."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: str
    is_admin: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_login: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Factory Method: the domain -> transport mapping lives with the output model."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            is_admin=user.role.value == "admin",
            created_at=user.created_at,
            updated_at=user.updated_at,
            last_login=user.last_login,
        )


class AuthData(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: UserResponse


class AuthResponse(BaseModel):
    """Response for POST /auth/signin, /api/users/login and /api/users/register."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
    data: AuthData


class UserEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: Optional[str] = None
    data: UserResponse


class UserListEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    count: int
    data: list[UserResponse]


# ---------------------------------------------------------------------------
# Content documents
# ---------------------------------------------------------------------------


class DocumentEnvelope(BaseModel):
    """A single contact, project or qualification."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: Optional[str] = None
    data: dict[str, Any]


class DocumentListEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    count: int
    data: list[dict[str, Any]]


class DeleteAllResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
    count: int


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class HealthData(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    database: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: HealthData
