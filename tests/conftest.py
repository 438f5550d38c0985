"""
tests/conftest.py -- Shared test fixtures for the portfolio API tests.

This module provides:
  - make_test_db(): an isolated named shared-memory database with the schema built
  - _patch_lifespan(): wires a test database into app.state, bypassing real startup
  - db / user_store / contacts / projects / qualifications: store-level fixtures
  - api: an ApiHarness with a TestClient, an admin and a regular user

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process, and
Database pins such URLs to a StaticPool.

Environment must be set before any app import: get_settings() is cached on
first call, so DEBUG (auto-generated SECRET_KEY), BCRYPT_ROUNDS (fast
hashing) and RATE_LIMIT_ENABLED (no 429s mid-suite) are read exactly once.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from typing import NamedTuple

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_state
from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from content.resources import CONTACTS, PROJECTS, QUALIFICATIONS
from content.store import ResourceStore
from core.database import Database

ADMIN_PASSWORD = "AdminPass1"
USER_PASSWORD = "UserPass1"


# ---------------------------------------------------------------------------
# Payload factories
# ---------------------------------------------------------------------------


def contact_payload(**overrides) -> dict:
    payload = {
        "firstname": "Ann",
        "lastname": "Lee",
        "email": "ann@example.com",
        "message": "Hello there, I would like to talk about a project.",
    }
    payload.update(overrides)
    return payload


def project_payload(**overrides) -> dict:
    payload = {
        "title": "Portfolio site",
        "firstname": "Ann",
        "lastname": "Lee",
        "email": "ann@example.com",
        "completion": "2024-05-01",
        "description": "A personal portfolio built with a REST backend.",
    }
    payload.update(overrides)
    return payload


def qualification_payload(**overrides) -> dict:
    payload = {
        "title": "BSc Computer Science",
        "firstname": "Ann",
        "lastname": "Lee",
        "email": "ann@example.com",
        "completion": "2022-06-30",
        "description": "Graduated with honours in software engineering.",
    }
    payload.update(overrides)
    return payload


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_db() -> Database:
    """Create an isolated named shared-memory SQLite database with every table.

    The uuid suffix keeps each test's data apart from every other test's.
    """
    db = Database(f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    db.create_all()
    return db


def _patch_lifespan(db: Database):
    """Return an async context manager that replaces the real lifespan.

    Wires the test database into app.state so TestClient routes see isolated
    stores rather than the configured DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, db)
        yield

    return test_lifespan


@pytest.fixture
def db() -> Generator[Database, None, None]:
    database = make_test_db()
    yield database
    database.close()


@pytest.fixture
def user_store(db: Database) -> UserStore:
    return UserStore(db)


@pytest.fixture
def contacts(db: Database) -> ResourceStore:
    return ResourceStore(db, CONTACTS)


@pytest.fixture
def projects(db: Database) -> ResourceStore:
    return ResourceStore(db, PROJECTS)


@pytest.fixture
def qualifications(db: Database) -> ResourceStore:
    return ResourceStore(db, QUALIFICATIONS)


# ---------------------------------------------------------------------------
# API harness
# ---------------------------------------------------------------------------


class ApiHarness(NamedTuple):
    client: TestClient
    db: Database
    admin_id: str
    admin_token: str
    user_id: str
    user_token: str

    @property
    def admin(self) -> dict[str, str]:
        return bearer(self.admin_token)

    @property
    def user(self) -> dict[str, str]:
        return bearer(self.user_token)


@pytest.fixture
def api(db: Database) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated in-memory database. One admin
    (admin@example.com / AdminPass1) and one regular user (user@example.com /
    UserPass1) exist before the client starts.
    """
    store = UserStore(db)
    admin_id = store.create_user(
        User(name="Site Admin", email="admin@example.com", hashed_password=hash_password(ADMIN_PASSWORD), role=Role.admin)
    )
    user_id = store.create_user(
        User(name="Regular User", email="user@example.com", hashed_password=hash_password(USER_PASSWORD))
    )

    app.router.lifespan_context = _patch_lifespan(db)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(
            client=client,
            db=db,
            admin_id=admin_id,
            admin_token=create_access_token(admin_id),
            user_id=user_id,
            user_token=create_access_token(user_id),
        )
