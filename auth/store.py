"""
auth/store.py -- SQLAlchemy Core persistence layer for user identities.

Pattern: Repository + Data Mapper (same as content/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  The store only ever sees password *hashes*. Hashing happens in
  auth/tokens.hash_password() before a User reaches create_user().

  Email uniqueness is enforced by a UNIQUE constraint on the lowercased
  address. A duplicate insert surfaces as Conflict, never as a generic
  validation failure.

Layer rule: no imports from api/, content/ or client/.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, String, Table, Text, func, select
from sqlalchemy.exc import IntegrityError

from auth.models import Role, User
from core.config import now_iso
from core.database import Database, metadata, new_id
from core.errors import Conflict

logger = logging.getLogger("portfolio.auth.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_users = Table(
    "users",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(100), nullable=False),
    Column("email", String(254), nullable=False, unique=True),  # always lowercased
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False, server_default=Role.user.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("last_login", String(32)),  # ISO 8601 timestamp of last successful sign-in
)

_DUPLICATE_EMAIL = "User already exists with this email"

# Columns update_user() accepts. Anything else is a programming error.
_MUTABLE_FIELDS = {"name", "email", "hashed_password", "role"}


def _normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(db)
        user_id = store.create_user(User(name="Ann", email="ann@x.com", hashed_password=hash_password("...")))
        user = store.get_by_email("ANN@x.com")   # case-insensitive
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned ID.

        Raises Conflict if the email (compared case-insensitively) is taken.
        """
        user_id = new_id()
        now = now_iso()
        try:
            with self.db.engine.begin() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        name=user.name,
                        email=_normalize_email(user.email),
                        hashed_password=user.hashed_password,
                        role=Role(user.role).value,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as exc:
            raise Conflict(_DUPLICATE_EMAIL) from exc
        logger.info("User created (id=%s, role=%s)", user_id, Role(user.role).value)
        return user_id

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.db.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email, ignoring case and surrounding whitespace."""
        with self.db.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == _normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users, newest first. Admin-only operation."""
        with self.db.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at.desc())).fetchall()
        return [_row_to_user(r) for r in rows]

    def update_user(self, user_id: str, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: name, email, hashed_password, role. updated_at is
        always refreshed.

        Returns True if a row was updated, False if user_id was not found.
        Raises Conflict if the new email belongs to another user.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        if "email" in fields:
            fields["email"] = _normalize_email(fields["email"])
        if "role" in fields:
            fields["role"] = Role(fields["role"]).value
        try:
            with self.db.engine.begin() as conn:
                result = conn.execute(
                    _users.update().where(_users.c.id == user_id).values(updated_at=now_iso(), **fields)
                )
        except IntegrityError as exc:
            raise Conflict(_DUPLICATE_EMAIL) from exc
        return result.rowcount > 0

    def delete_user(self, user_id: str) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Callers check last-admin invariants before calling this method.
        """
        with self.db.engine.begin() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
        return result.rowcount > 0

    def count_admins(self) -> int:
        """Return the number of admin users.

        Used by the admin user routes to refuse demoting or deleting the last admin.
        """
        with self.db.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_users).where(_users.c.role == Role.admin.value)
            ).scalar()
        return result or 0

    def has_admin(self) -> bool:
        """True once at least one admin account exists."""
        return self.count_admins() > 0

    def update_last_login(self, user_id: str) -> str:
        """Stamp the current UTC timestamp as last_login and return it."""
        stamp = now_iso()
        with self.db.engine.begin() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(last_login=stamp))
        return stamp


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_login=row.last_login,
    )
