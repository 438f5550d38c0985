"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Only one credential is accepted: an "Authorization: Bearer <token>" header
carrying a JWT issued by /auth/signin or /api/users/register.

get_current_user() raises Unauthorized if the header is missing, malformed,
or carries a bad/expired token.
require_admin_user() wraps get_current_user() and raises Forbidden if the
user is not an admin.

Both raise core.errors types; api/main.py turns them into 401/403 envelopes.

Layer rule: no imports from api/, content/ or client/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.models import User
from auth.service import require_admin, verify_token
from core.errors import Unauthorized


def bearer_token(request: Request) -> str:
    """Extract the raw token from the Authorization header or raise Unauthorized."""
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Not authorized, no token")
    return token.strip()


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    return verify_token(request.app.state.user_store, bearer_token(request))


def require_admin_user(user: User = Depends(get_current_user)) -> User:
    """Require the admin role. Unauthorized if unauthenticated, Forbidden if not admin.

    Use as a FastAPI dependency:
        @router.delete("/admin-only")
        def route(user: User = Depends(require_admin_user)): ...
    """
    return require_admin(user)
