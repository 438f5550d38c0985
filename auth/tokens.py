"""
auth/tokens.py -- Password hashing and JWT utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       only the user id (sub), issue time and expiry. Role is deliberately
       NOT trusted from the token: verify_token() in auth/service.py re-reads
       the user so a demoted or deleted account takes effect immediately.

  Passwords: bcrypt with a configurable cost factor (BCRYPT_ROUNDS, default
       12). Bcrypt is the right choice for low-entropy secrets because its
       cost factor makes brute force expensive. _DUMMY_HASH enables timing
       equalization in authenticate_user() so response time does not reveal
       whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(). Settings validates
       the key at startup: dev mode (DEBUG=true) auto-generates a random key
       with a warning; production mode refuses to start without one.

Layer rule: no imports from api/, content/ or client/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from core.config import get_settings
from core.errors import InvalidCredentials, TokenExpired, Unauthorized

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("portfolio.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
#
# Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
# wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
# rejects with an explicit error.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only considers the first 72 bytes; core/validation.py rejects
    longer passwords at registration, so nothing is silently truncated.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long candidate password.
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first sign-in attempt is not measurably
# slower than subsequent ones. verify_password() always runs, even when the
# email is unknown.
_DUMMY_HASH: str = hash_password("portfolio_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT identifying user_id.

    Args:
        user_id:        The user's store id, carried as the subject claim.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (30 days unless
                        configured). Negative values mint already-expired
                        tokens, which tests use to exercise expiry.
    """
    duration = expire_seconds if expire_seconds != 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Verify a JWT's signature and expiry and return the user id it carries.

    Raises TokenExpired when the token is past its exp claim and Unauthorized
    for any other problem (bad signature, garbage input, missing subject).
    TokenExpired is itself an Unauthorized, so callers that do not care about
    the distinction catch one type.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise Unauthorized() from exc
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise Unauthorized()
    return subject


# ---------------------------------------------------------------------------
# Credential check (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User:
    """Return the user owning (email, password) or raise InvalidCredentials.

    Always runs bcrypt whether or not the user exists, so an attacker cannot
    enumerate registered emails by measuring response time:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    The error is identical in both cases.
    """
    user = store.get_by_email(email)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        logger.info("Sign-in rejected: unknown account")
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        logger.info("Sign-in rejected: bad password (user_id=%s)", user.id)
        raise InvalidCredentials()
    return user
