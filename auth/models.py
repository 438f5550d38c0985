"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in content/models.py -- dataclasses own domain shape; stores, services and
routes do the work.

Layer rule: no imports from api/, content/ or client/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Two roles only. Gating is a function of the role (auth/service.is_admin),
    not a class hierarchy of user types."""

    user = "user"
    admin = "admin"


@dataclass
class User:
    """An identity that can sign in.

    email is stored lowercased and is the natural unique key.

    hashed_password is the bcrypt hash. It never leaves the process: API
    responses are built from api.models.UserResponse, which has no password
    field at all.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    hashed_password: str
    role: Role = Role.user
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    last_login: str | None = None
