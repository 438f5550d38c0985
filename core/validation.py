"""
core/validation.py -- Request models checked before every write.

Each entity owns a Pydantic v2 model. parse_body() validates a raw JSON
object against it and returns the normalized data (trimmed strings,
lowercased emails, YYYY-MM-DD dates). When anything fails it raises
ValidationFailed carrying every broken field, not just the first: clients
render the whole list next to their form fields.

Pydantic's own error texts are replaced by the project's messages
("Email is required", "Title must be between 2 and 100 characters"). The
label and bounds come from each field's Field(title=..., min_length=...,
max_length=...). Fields whose required message or format message differ
from the defaults carry them in json_schema_extra.

Usage:
    data = parse_body(ContactIn, payload)              # full document
    data = parse_body(ProfileUpdateIn, payload, partial=True)   # only sent keys

Layer rule: no imports from api/, auth/, content/ or client/.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)
from pydantic.fields import FieldInfo

from core.errors import ValidationFailed, Violation

URL_PATTERN = r"(?i)^https?://[^\s/$.?#]\S*$"

# bcrypt only looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72
_PASSWORD_MIN_LENGTH = 6
_MAX_TECHNOLOGIES = 20
_TECHNOLOGY_MAX_LENGTH = 50

# Passwords are compared byte for byte, never trimmed.
_Password = Annotated[str, StringConstraints(strip_whitespace=False)]

_EMAIL_MESSAGE = "Please provide a valid email"
_COMPLETION_MESSAGE = "Please provide a valid completion date"


def _messages(required: Optional[str] = None, invalid: Optional[str] = None) -> Optional[dict[str, str]]:
    extra = {}
    if required:
        extra["required_message"] = required
    if invalid:
        extra["invalid_message"] = invalid
    return extra or None


def _email_field(default: Any = ...) -> Any:
    return Field(default, title="Email", json_schema_extra=_messages(invalid=_EMAIL_MESSAGE))


def _url_field(label: str) -> Any:
    return Field(
        default=None,
        title=label,
        max_length=500,
        pattern=URL_PATTERN,
        json_schema_extra=_messages(invalid=f"{label} must be a valid http(s) URL"),
    )


def _role_field() -> Any:
    return Field(default=None, title="Role", json_schema_extra=_messages(invalid="Role must be one of: user, admin"))


def parse_calendar_date(raw: str) -> date:
    """Parse an ISO 8601 date or datetime string into a calendar date.

    Raises ValueError for anything that is not a real calendar date
    (e.g. "2024-02-30" or "next tuesday").
    """
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return datetime.fromisoformat(raw).date()


# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------


class RequestModel(BaseModel):
    """Common config for every request body: trim strings, drop unknown keys."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def lowercase_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("image_url", "github_url", "live_url", "role", mode="before", check_fields=False)
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """An optional field sent empty is stored as absent."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


def check_password_strength(value: str) -> str:
    if len(value) < _PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {_PASSWORD_MIN_LENGTH} characters long")
    if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise ValueError(f"Password cannot exceed {_BCRYPT_MAX_BYTES} bytes")
    if not (any(c.islower() for c in value) and any(c.isupper() for c in value) and any(c.isdigit() for c in value)):
        raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
    return value


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class ContactIn(RequestModel):
    firstname: str = Field(title="First name", min_length=2, max_length=50)
    lastname: str = Field(title="Last name", min_length=2, max_length=50)
    email: EmailStr = _email_field()
    message: str = Field(title="Message", min_length=10, max_length=1000)


class _DatedEntry(RequestModel):
    """Fields shared by projects and qualifications."""

    firstname: str = Field(title="First name", min_length=2, max_length=50)
    lastname: str = Field(title="Last name", min_length=2, max_length=50)
    email: EmailStr = _email_field()
    completion: date = Field(title="Completion date", json_schema_extra=_messages(invalid=_COMPLETION_MESSAGE))

    @field_validator("completion", mode="before")
    @classmethod
    def parse_completion(cls, value: Any) -> Any:
        """Accept YYYY-MM-DD or a full ISO datetime; keep only the calendar date."""
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValueError(_COMPLETION_MESSAGE)
        try:
            return parse_calendar_date(value.strip())
        except ValueError as exc:
            raise ValueError(_COMPLETION_MESSAGE) from exc


class ProjectIn(_DatedEntry):
    title: str = Field(title="Project title", min_length=3, max_length=100)
    description: str = Field(title="Project description", min_length=10, max_length=2000)
    technologies: list[str] = Field(default_factory=list, title="Technologies")
    image_url: Optional[str] = _url_field("Image URL")
    github_url: Optional[str] = _url_field("GitHub URL")
    live_url: Optional[str] = _url_field("Live URL")

    @field_validator("technologies", mode="before")
    @classmethod
    def normalize_technologies(cls, values: Any) -> list[str]:
        """Trim entries and drop blanks before the count and length limits apply."""
        if values is None:
            return []
        if not isinstance(values, list) or not all(isinstance(item, str) for item in values):
            raise ValueError("Technologies must be a list of strings")
        items = [item.strip() for item in values if item.strip()]
        if len(items) > _MAX_TECHNOLOGIES:
            raise ValueError(f"Technologies cannot contain more than {_MAX_TECHNOLOGIES} items")
        if any(len(item) > _TECHNOLOGY_MAX_LENGTH for item in items):
            raise ValueError(f"Each entry in technologies cannot exceed {_TECHNOLOGY_MAX_LENGTH} characters")
        return items


class QualificationIn(_DatedEntry):
    title: str = Field(
        title="Title",
        min_length=2,
        max_length=100,
        json_schema_extra=_messages(required="Qualification title is required"),
    )
    description: str = Field(title="Description", min_length=10, max_length=1000)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class SignInIn(RequestModel):
    email: EmailStr = _email_field()
    # No strength rules on sign-in: a weak guess is just wrong credentials.
    password: _Password = Field(title="Password")


class RegistrationIn(RequestModel):
    name: str = Field(title="Name", min_length=2, max_length=100)
    email: EmailStr = _email_field()
    password: _Password = Field(title="Password")

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class AdminUserCreateIn(RegistrationIn):
    role: Optional[Literal["user", "admin"]] = _role_field()


class ProfileUpdateIn(RequestModel):
    """Every field may be omitted; a field that is sent is checked in full.

    Parse with partial=True so omitted fields stay out of the result.
    """

    name: str = Field(default=None, title="Name", min_length=2, max_length=100)
    email: EmailStr = _email_field(default=None)
    password: _Password = Field(default=None, title="Password")

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class AdminUserUpdateIn(ProfileUpdateIn):
    role: Optional[Literal["user", "admin"]] = _role_field()


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_body(model: type[RequestModel], payload: Any, partial: bool = False) -> dict[str, Any]:
    """Validate payload against model and return the normalized data as JSON-ready values.

    partial=True is for updates that only carry the fields being changed:
    keys the caller did not send are left out of the result.

    Raises ValidationFailed with one violation per broken field.
    """
    try:
        parsed = model.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed(violations_from_error(model, exc, payload)) from exc
    return parsed.model_dump(mode="json", exclude_unset=partial)


def violations_from_error(model: type[BaseModel], exc: ValidationError, payload: Any) -> list[Violation]:
    """Translate ValidationError.errors() into project messages, first error per field."""
    violations: dict[str, Violation] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        if not loc:
            violations.setdefault("body", Violation("body", "Request body must be a JSON object"))
            continue
        name = str(loc[0])
        if name in violations:
            continue
        raw = payload.get(name) if isinstance(payload, dict) else None
        violations[name] = Violation(name, _message_for(model.model_fields.get(name), name, err, raw))
    return list(violations.values())


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _length_message(label: str, info: FieldInfo) -> str:
    low = high = None
    for item in info.metadata:
        if getattr(item, "min_length", None) is not None:
            low = item.min_length
        if getattr(item, "max_length", None) is not None:
            high = item.max_length
    if low is not None and high is not None:
        return f"{label} must be between {low} and {high} characters"
    if low is not None:
        return f"{label} must be at least {low} characters long"
    return f"{label} cannot exceed {high} characters"


def _message_for(info: Optional[FieldInfo], name: str, err: dict[str, Any], raw: Any) -> str:
    if info is None:
        return str(err.get("msg", "Invalid value"))
    label = info.title or name
    extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
    kind = err.get("type")

    if kind == "missing" or _is_blank(raw):
        return str(extra.get("required_message", f"{label} is required"))
    if kind in ("string_too_short", "string_too_long"):
        return _length_message(label, info)
    if "invalid_message" in extra:
        return str(extra["invalid_message"])
    if kind == "string_type":
        return f"{label} must be a string"
    if kind == "value_error" and "error" in err.get("ctx", {}):
        return str(err["ctx"]["error"])
    return str(err.get("msg", "Invalid value"))
