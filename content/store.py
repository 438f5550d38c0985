"""
content/store.py -- One generic CRUD repository for every content collection.

Contacts, projects and qualifications share the same contract, so there is
exactly one implementation of it: ResourceStore, parameterized by a
ResourceSpec (table, dataclass, request model, sort order). The per-entity
specs live in content/resources.py.

Contract (identical for every spec):
  list_all()          -- every document, newest first per spec.sort_by
  get(id)             -- InvalidId for malformed ids, NotFound for unknown ones
  create(payload)     -- ValidationFailed with every violation, else the new document
  update(id, payload) -- merge supplied fields over the stored document,
                         re-validate the merged result, persist
  delete(id)          -- remove and return the removed document
  delete_all()        -- remove everything, return the count

Pattern: Repository + Data Mapper. _row_to_doc / _doc_to_row translate
between rows and the dataclasses in content/models.py. Every operation is a
single statement (or a read followed by a single write on the same id), so
per-row atomicity of the database is all the consistency this needs.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ResourceStore(db, PROJECTS)
    project = store.create({"title": "Portfolio site", ...})
    store.update(project.id, {"completion": "2024-06-01"})
    store.delete(project.id)
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

from sqlalchemy import Table

from core.config import now_iso
from core.database import Database, check_id, new_id
from core.errors import NotFound
from core.validation import RequestModel, parse_body

logger = logging.getLogger("portfolio.content")


@dataclass(frozen=True)
class ResourceSpec:
    """Everything that distinguishes one content collection from another.

    name      -- collection name, used as the URL segment (/api/<name>)
    label     -- singular display name used in messages ("Project not found")
    table     -- SQLAlchemy Core table holding the documents
    model     -- dataclass documents are mapped to
    schema    -- request model every write is validated against
    sort_by   -- columns to order list_all() by, each descending
    json_fields -- list-valued fields stored as JSON text
    """

    name: str
    label: str
    table: Table
    model: type
    schema: type[RequestModel]
    sort_by: tuple[str, ...] = ("created_at",)
    json_fields: tuple[str, ...] = ()

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self.schema.model_fields)


class ResourceStore:
    """Repository implementing the CRUD contract for one ResourceSpec."""

    def __init__(self, db: Database, spec: ResourceSpec) -> None:
        self.db = db
        self.spec = spec

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_all(self) -> list:
        """Return every document ordered by spec.sort_by, descending. Empty list if none."""
        table = self.spec.table
        order = [table.c[column].desc() for column in self.spec.sort_by]
        with self.db.engine.connect() as conn:
            rows = conn.execute(table.select().order_by(*order)).fetchall()
        return [self._row_to_doc(r) for r in rows]

    def get(self, doc_id: str):
        """Return the document with this id.

        Raises InvalidId if doc_id is not a well-formed id and NotFound if it
        is well-formed but matches nothing.
        """
        check_id(doc_id, f"{self.spec.label.lower()} ID")
        table = self.spec.table
        with self.db.engine.connect() as conn:
            row = conn.execute(table.select().where(table.c.id == doc_id)).fetchone()
        if row is None:
            raise NotFound(f"{self.spec.label} not found")
        return self._row_to_doc(row)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, payload: dict[str, Any]):
        """Validate payload and insert it. Raises ValidationFailed listing every violation."""
        data = parse_body(self.spec.schema, payload)
        doc_id = new_id()
        now = now_iso()
        values = self._doc_to_row(data)
        values.update(id=doc_id, created_at=now, updated_at=now)
        with self.db.engine.begin() as conn:
            conn.execute(self.spec.table.insert().values(**values))
        logger.info("%s created (id=%s)", self.spec.label, doc_id)
        return self.get(doc_id)

    def update(self, doc_id: str, payload: dict[str, Any]):
        """Apply the supplied fields to an existing document.

        Fields absent from payload keep their stored values. The merged
        document is validated as a whole, so an update can never leave a
        document that create() would have rejected. Only the supplied fields
        are written back; a concurrent update to other fields survives.
        """
        current = self.get(doc_id)
        stored = asdict(current)
        supplied = [name for name in self.spec.field_names if name in payload]
        merged = {name: stored.get(name) for name in self.spec.field_names}
        merged.update({name: payload[name] for name in supplied})
        data = parse_body(self.spec.schema, merged)

        values = self._doc_to_row({name: data[name] for name in supplied})
        values["updated_at"] = now_iso()
        table = self.spec.table
        with self.db.engine.begin() as conn:
            result = conn.execute(table.update().where(table.c.id == doc_id).values(**values))
        if result.rowcount == 0:
            # Deleted between the read and the write.
            raise NotFound(f"{self.spec.label} not found")
        logger.info("%s updated (id=%s)", self.spec.label, doc_id)
        return self.get(doc_id)

    def delete(self, doc_id: str):
        """Remove the document and return it as it was before deletion."""
        doc = self.get(doc_id)
        table = self.spec.table
        with self.db.engine.begin() as conn:
            result = conn.execute(table.delete().where(table.c.id == doc_id))
        if result.rowcount == 0:
            raise NotFound(f"{self.spec.label} not found")
        logger.info("%s deleted (id=%s)", self.spec.label, doc_id)
        return doc

    def delete_all(self) -> int:
        """Remove every document in the collection. Returns the number removed."""
        with self.db.engine.begin() as conn:
            result = conn.execute(self.spec.table.delete())
        logger.warning("All %s deleted (%d rows)", self.spec.name, result.rowcount)
        return result.rowcount

    # ------------------------------------------------------------------
    # Data mapper
    # ------------------------------------------------------------------

    def _doc_to_row(self, data: dict[str, Any]) -> dict[str, Any]:
        row: dict[str, Any] = {}
        for name, value in data.items():
            if name not in self.spec.field_names:
                continue
            if name in self.spec.json_fields:
                value = json.dumps(value or [])
            row[name] = value
        return row

    def _row_to_doc(self, row):
        mapping = row._mapping
        kwargs: dict[str, Any] = {}
        for f in fields(self.spec.model):
            value = mapping[f.name]
            if f.name in self.spec.json_fields:
                value = json.loads(value) if value else []
            kwargs[f.name] = value
        return self.spec.model(**kwargs)
