"""
api/routes/resources.py -- One router factory for every content collection.

build_resource_router(spec, ...) returns an APIRouter serving:
  GET    /api/<name>        -- list, newest first          (count + data)
  GET    /api/<name>/{id}   -- one document
  POST   /api/<name>        -- create                       (201)
  PUT    /api/<name>/{id}   -- update supplied fields
  DELETE /api/<name>/{id}   -- delete, returns the removed document
  DELETE /api/<name>        -- delete every document        (admin only)

Which of the read and create routes are public is the only difference
between collections; update and delete are admin-only everywhere.

Handlers are plain `def`: the stores do blocking database I/O, so FastAPI
runs them in its thread pool.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.models import DeleteAllResponse, DocumentEnvelope, DocumentListEnvelope
from auth.dependencies import require_admin_user
from content.store import ResourceSpec, ResourceStore

_ADMIN = [Depends(require_admin_user)]


def build_resource_router(spec: ResourceSpec, public_read: bool, public_create: bool) -> APIRouter:
    """Return the CRUD router for one collection.

    public_read   -- list/get need no token (projects, qualifications)
    public_create -- create needs no token (contacts: the public contact form)
    """
    router = APIRouter(prefix=f"/api/{spec.name}")
    read_deps = [] if public_read else _ADMIN
    create_deps = [] if public_create else _ADMIN
    label = spec.label

    def _store(request: Request) -> ResourceStore:
        return request.app.state.resources[spec.name]

    @router.get("", response_model=DocumentListEnvelope, dependencies=read_deps)
    def list_documents(request: Request) -> DocumentListEnvelope:
        docs = _store(request).list_all()
        return DocumentListEnvelope(count=len(docs), data=[asdict(d) for d in docs])

    @router.get("/{doc_id}", response_model=DocumentEnvelope, dependencies=read_deps)
    def get_document(request: Request, doc_id: str) -> DocumentEnvelope:
        return DocumentEnvelope(data=asdict(_store(request).get(doc_id)))

    @router.post("", response_model=DocumentEnvelope, status_code=201, dependencies=create_deps)
    def create_document(request: Request, body: dict[str, Any] = Body(...)) -> DocumentEnvelope:
        doc = _store(request).create(body)
        return DocumentEnvelope(message=f"{label} created successfully", data=asdict(doc))

    @router.put("/{doc_id}", response_model=DocumentEnvelope, dependencies=_ADMIN)
    def update_document(request: Request, doc_id: str, body: dict[str, Any] = Body(...)) -> DocumentEnvelope:
        doc = _store(request).update(doc_id, body)
        return DocumentEnvelope(message=f"{label} updated successfully", data=asdict(doc))

    @router.delete("/{doc_id}", response_model=DocumentEnvelope, dependencies=_ADMIN)
    def delete_document(request: Request, doc_id: str) -> DocumentEnvelope:
        doc = _store(request).delete(doc_id)
        return DocumentEnvelope(message=f"{label} deleted successfully", data=asdict(doc))

    @router.delete("", response_model=DeleteAllResponse, dependencies=_ADMIN)
    def delete_all_documents(request: Request) -> DeleteAllResponse:
        count = _store(request).delete_all()
        return DeleteAllResponse(message=f"Successfully deleted {count} {spec.name}", count=count)

    return router
