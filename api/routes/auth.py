"""
api/routes/auth.py -- Sign-in and sign-out endpoints.

Routes:
  POST /auth/signin   -- exchange {email, password} for a bearer token
  GET  /auth/signout  -- acknowledge sign-out; the client discards its token

Security:
  POST /auth/signin is rate-limited per IP (LOGIN_RATE_LIMIT, default 10/minute).
  authenticate_user() provides timing equalization; sign_in() goes through it.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_LIMIT, limiter
from api.models import AuthData, AuthResponse, MessageResponse, UserResponse
from auth.service import sign_in, sign_out
from auth.store import UserStore
from core.validation import SignInIn, parse_body

# Auth policy:
# - POST /auth/signin:  public -- sign-in must be unauthenticated
# - GET  /auth/signout: public -- discarding a token needs no prior auth
router = APIRouter()


def auth_response(token: str, user, message: str, status_code: int = 200) -> JSONResponse:
    """Build the {success, message, data: {token, user}} envelope with no-store caching."""
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            message=message,
            data=AuthData(token=token, user=UserResponse.from_user(user)),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def handle_sign_in(request: Request, body: dict[str, Any]) -> JSONResponse:
    """Shared by /auth/signin and /api/users/login."""
    data = parse_body(SignInIn, body)
    user_store: UserStore = request.app.state.user_store
    result = sign_in(user_store, data["email"], data["password"])
    return auth_response(result.token, result.user, "Signin successful")


@limiter.limit(LOGIN_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/signin", response_model=AuthResponse)
def signin(request: Request, body: dict[str, Any] = Body(...)) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401 "Invalid
    credentials" so the endpoint cannot be used to enumerate accounts.
    """
    return handle_sign_in(request, body)


@router.get("/auth/signout", response_model=MessageResponse)
async def signout() -> MessageResponse:
    return MessageResponse(message=sign_out())
