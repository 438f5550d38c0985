"""
auth/service.py -- Sign-in, sign-out, token verification and the admin gate.

Request auth states:
    Unauthenticated --(valid token)--> Authenticated --(admin role)--> Authorized-Admin
Failures are terminal: Unauthorized (bad, missing or expired token) or
Forbidden (valid identity, insufficient role). Tokens are never refreshed;
an expired token means signing in again.

Sign-out is stateless. There is no session table, so a token stays valid
until its exp claim even after the holder signs out. Real revocation would
need a denylist keyed by token id or short-lived tokens plus refresh tokens.

Layer rule: no imports from api/, content/ or client/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, decode_access_token
from core.errors import Forbidden, Unauthorized

logger = logging.getLogger("portfolio.auth.service")


@dataclass
class SignInResult:
    token: str
    user: User


def sign_in(store: UserStore, email: str, password: str) -> SignInResult:
    """Exchange credentials for a bearer token.

    Raises InvalidCredentials (same message for unknown email and wrong
    password). On success the user's last_login is stamped and the returned
    user reflects it.
    """
    user = authenticate_user(store, email, password)
    user.last_login = store.update_last_login(user.id)
    logger.info("Sign-in succeeded (user_id=%s)", user.id)
    return SignInResult(token=create_access_token(user.id), user=user)


def sign_out() -> str:
    """Acknowledge a sign-out. The client discards its token; nothing else happens."""
    return "Signout successful"


def verify_token(store: UserStore, token: str) -> User:
    """Resolve a bearer token to the user it names.

    Raises TokenExpired / Unauthorized for bad tokens, and Unauthorized when
    the token is valid but its user no longer exists. The user is always
    re-read from the store so role changes apply immediately.
    """
    user_id = decode_access_token(token)
    user = store.get_by_id(user_id)
    if user is None:
        raise Unauthorized("Not authorized, user not found")
    return user


def is_admin(user: User) -> bool:
    return user.role == Role.admin


def require_admin(user: User) -> User:
    """Return user unchanged if it holds the admin role, else raise Forbidden."""
    if not is_admin(user):
        raise Forbidden()
    return user
