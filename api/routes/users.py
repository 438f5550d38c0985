"""
api/routes/users.py -- Registration, profile and admin user management.

Routes:
  POST   /api/users/register    -- create a user account and sign it in (public)
  POST   /api/users/login       -- alias of POST /auth/signin
  GET    /api/users/profile     -- current user (requires auth)
  PUT    /api/users/profile     -- update own name/email/password (requires auth)
  GET    /api/users             -- list all users (admin only)
  POST   /api/users             -- create a user with any role (admin only)
  GET    /api/users/{id}        -- one user (admin only)
  PUT    /api/users/{id}        -- update name/email/password/role (admin only)
  DELETE /api/users/{id}        -- delete a user, returns it (admin only)

Security:
  Registration always creates role=user. Only an admin can grant admin.
  SELF_REGISTRATION_ENABLED=false closes /register (403).
  An admin cannot delete or demote their own account, so there is always
  at least one admin left to manage the others.
  No response ever includes hashed_password: UserResponse has no such field.

The static paths (/register, /login, /profile) are registered before
/{user_id} so they are never captured as ids.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_LIMIT, limiter
from api.models import AuthResponse, UserEnvelope, UserListEnvelope, UserResponse
from api.routes.auth import auth_response, handle_sign_in
from auth.dependencies import get_current_user, require_admin_user
from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from core.config import get_settings
from core.database import check_id
from core.errors import Conflict, Forbidden, NotFound, ValidationFailed, Violation
from core.validation import (
    AdminUserCreateIn,
    AdminUserUpdateIn,
    ProfileUpdateIn,
    RegistrationIn,
    parse_body,
)

logger = logging.getLogger("portfolio.api.users")

# Auth policy:
# - POST /api/users/register, /api/users/login: public
# - GET/PUT /api/users/profile:                 requires auth (get_current_user)
# - everything under /api/users/{id} and /api/users itself: requires admin
router = APIRouter()


def _store(request: Request) -> UserStore:
    return request.app.state.user_store


def _load_user(store: UserStore, user_id: str) -> User:
    check_id(user_id, "user ID")
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def _to_update_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Map validated payload fields to UserStore.update_user() keyword arguments."""
    fields: dict[str, Any] = {}
    for key in ("name", "email", "role"):
        if data.get(key) is not None:
            fields[key] = data[key]
    if data.get("password") is not None:
        fields["hashed_password"] = hash_password(data["password"])
    if not fields:
        raise ValidationFailed([Violation("body", "No fields to update")])
    return fields


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/api/users/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: dict[str, Any] = Body(...)) -> JSONResponse:
    """Create a role=user account and return a token for it, as sign-in would."""
    if not get_settings().self_registration_enabled:
        raise Forbidden("Self-registration is disabled")
    data = parse_body(RegistrationIn, body)

    store = _store(request)
    user_id = store.create_user(
        User(
            name=data["name"],
            email=data["email"],
            hashed_password=hash_password(data["password"]),
            role=Role.user,
        )
    )
    store.update_last_login(user_id)
    user = store.get_by_id(user_id)
    logger.info("User registered (id=%s)", user_id)
    return auth_response(create_access_token(user_id), user, "User registered successfully", status_code=201)


@limiter.limit(LOGIN_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/api/users/login", response_model=AuthResponse)
def login(request: Request, body: dict[str, Any] = Body(...)) -> JSONResponse:
    return handle_sign_in(request, body)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/api/users/profile", response_model=UserEnvelope)
def get_profile(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(data=UserResponse.from_user(current_user))


@router.put("/api/users/profile", response_model=UserEnvelope)
def update_profile(
    request: Request,
    body: dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
) -> UserEnvelope:
    """Update the caller's own name, email or password. Role is not accepted here."""
    data = parse_body(ProfileUpdateIn, body, partial=True)
    store = _store(request)
    store.update_user(current_user.id, **_to_update_fields(data))
    return UserEnvelope(
        message="Profile updated successfully",
        data=UserResponse.from_user(_load_user(store, current_user.id)),
    )


# ---------------------------------------------------------------------------
# Admin endpoints
# ---------------------------------------------------------------------------


@router.get("/api/users", response_model=UserListEnvelope)
def list_users(request: Request, _admin: User = Depends(require_admin_user)) -> UserListEnvelope:
    users = _store(request).list_users()
    return UserListEnvelope(count=len(users), data=[UserResponse.from_user(u) for u in users])


@router.post("/api/users", response_model=UserEnvelope, status_code=201)
def create_user(
    request: Request,
    body: dict[str, Any] = Body(...),
    admin: User = Depends(require_admin_user),
) -> UserEnvelope:
    """Create an account with an explicit role. No token is issued."""
    data = parse_body(AdminUserCreateIn, body)
    store = _store(request)
    user_id = store.create_user(
        User(
            name=data["name"],
            email=data["email"],
            hashed_password=hash_password(data["password"]),
            role=Role(data.get("role") or Role.user.value),
        )
    )
    logger.info("User created by admin (id=%s, admin_id=%s)", user_id, admin.id)
    return UserEnvelope(message="User created successfully", data=UserResponse.from_user(_load_user(store, user_id)))


@router.get("/api/users/{user_id}", response_model=UserEnvelope)
def get_user(request: Request, user_id: str, _admin: User = Depends(require_admin_user)) -> UserEnvelope:
    return UserEnvelope(data=UserResponse.from_user(_load_user(_store(request), user_id)))


@router.put("/api/users/{user_id}", response_model=UserEnvelope)
def update_user(
    request: Request,
    user_id: str,
    body: dict[str, Any] = Body(...),
    admin: User = Depends(require_admin_user),
) -> UserEnvelope:
    """Update any user. Demoting yourself is refused."""
    store = _store(request)
    target = _load_user(store, user_id)
    data = parse_body(AdminUserUpdateIn, body, partial=True)
    if target.id == admin.id and data.get("role") == Role.user.value:
        raise Forbidden("You cannot remove your own admin role")
    if not store.update_user(target.id, **_to_update_fields(data)):
        raise NotFound("User not found")
    logger.info("User updated by admin (id=%s, admin_id=%s)", target.id, admin.id)
    return UserEnvelope(message="User updated successfully", data=UserResponse.from_user(_load_user(store, target.id)))


@router.delete("/api/users/{user_id}", response_model=UserEnvelope)
def delete_user(request: Request, user_id: str, admin: User = Depends(require_admin_user)) -> UserEnvelope:
    store = _store(request)
    target = _load_user(store, user_id)
    if target.id == admin.id:
        raise Forbidden("You cannot delete your own account")
    if target.role == Role.admin and store.count_admins() <= 1:
        raise Conflict("Cannot delete the last admin account")
    if not store.delete_user(target.id):
        raise NotFound("User not found")
    logger.info("User deleted by admin (id=%s, admin_id=%s)", target.id, admin.id)
    return UserEnvelope(message="User deleted successfully", data=UserResponse.from_user(target))
