"""Unit tests for core/database.py -- engine setup and id helpers.

Covers:
- in-memory SQLite URLs get a StaticPool and no deprecation warning
- file-backed SQLite keeps the default pool
- check_id accepts uuid4 hex ids and rejects everything else
- ping() reports reachability
"""

from __future__ import annotations

import warnings

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SADeprecationWarning
from sqlalchemy.pool import StaticPool

from core.database import Database, check_id, new_id
from core.errors import InvalidId


class TestEngine:
    def test_shared_memory_url_uses_static_pool(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error", SADeprecationWarning)
            db = Database("sqlite:///file:pool_check?mode=memory&cache=shared&uri=true")
        try:
            assert isinstance(db.engine.pool, StaticPool)
            db.create_all()
            assert db.ping()
        finally:
            db.close()

    def test_plain_memory_url_uses_static_pool(self) -> None:
        db = Database("sqlite:///:memory:")
        try:
            assert isinstance(db.engine.pool, StaticPool)
        finally:
            db.close()

    def test_file_database_keeps_default_pool(self, tmp_path) -> None:
        db = Database(f"sqlite:///{tmp_path / 'portfolio.db'}")
        try:
            assert not isinstance(db.engine.pool, StaticPool)
            assert db.ping()
        finally:
            db.close()

    def test_fixture_database_keeps_data_across_connections(self, db: Database) -> None:
        with db.engine.begin() as conn:
            conn.execute(text("CREATE TABLE scratch (n INTEGER)"))
            conn.execute(text("INSERT INTO scratch VALUES (1)"))
        with db.engine.connect() as conn:
            assert conn.execute(text("SELECT n FROM scratch")).scalar() == 1


class TestIds:
    def test_new_id_is_valid(self) -> None:
        doc_id = new_id()
        assert check_id(doc_id) == doc_id

    @pytest.mark.parametrize("raw", ["", "123", "Z" * 32, "0" * 31, None])
    def test_malformed_ids(self, raw) -> None:
        with pytest.raises(InvalidId) as exc_info:
            check_id(raw, "project ID")
        assert exc_info.value.message == "Invalid project ID format"
