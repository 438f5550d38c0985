"""
core/database.py -- The one store handle shared by every repository.

The engine (and its connection pool) is created exactly once per process by
the FastAPI lifespan or the CLI, handed to UserStore and each ResourceStore,
and disposed with close() on shutdown. No module opens its own engine and
nothing reaches for a global connection.

Usage:
    db = Database("sqlite:///portfolio.db")
    users = UserStore(db)
    projects = ResourceStore(db, PROJECTS)
    db.create_all()
    ...
    db.close()
"""

from __future__ import annotations

import logging
import re
import uuid

from sqlalchemy import MetaData, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from core.errors import InvalidId

logger = logging.getLogger("portfolio.database")

# Every table in the application is registered on this MetaData so a single
# create_all() call builds the full schema.
metadata = MetaData()

# Document ids are uuid4 hex strings. Anything else is malformed, which is a
# different failure (400) from a well-formed id that matches nothing (404).
_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def new_id() -> str:
    return uuid.uuid4().hex


def check_id(raw: str, label: str = "ID") -> str:
    """Return raw if it is a well-formed document id, else raise InvalidId."""
    if not isinstance(raw, str) or not _ID_RE.match(raw):
        raise InvalidId(f"Invalid {label} format")
    return raw


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


class Database:
    """Owns the SQLAlchemy engine for the lifetime of the process."""

    def __init__(self, url: str) -> None:
        engine_args: dict = {}
        connect_args: dict = {}
        is_sqlite = url.startswith("sqlite")
        in_memory = is_sqlite and (":memory:" in url or "mode=memory" in url)
        if is_sqlite:
            # Route handlers run in a thread pool; the pool hands connections
            # to whichever worker thread asks.
            connect_args["check_same_thread"] = False
        if in_memory:
            # One connection for the engine's lifetime keeps the in-memory database alive.
            engine_args["poolclass"] = StaticPool
        self.url = url
        self.engine: Engine = create_engine(url, connect_args=connect_args, **engine_args)
        if is_sqlite and not in_memory:
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        logger.info("Database engine created (%s)", self.engine.url.render_as_string(hide_password=True))

    def create_all(self) -> None:
        """Create any missing tables. Idempotent, safe on every startup."""
        metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if a trivial query succeeds. Used by the health endpoint."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")
