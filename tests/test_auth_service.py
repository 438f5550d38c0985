"""Unit tests for auth/tokens.py and auth/service.py.

Covers:
- sign_in -> token; verify_token -> the same user
- wrong password and unknown email fail identically
- expired, tampered and garbage tokens are Unauthorized
- a valid token for a deleted user is Unauthorized
- require_admin gates on role
"""

from __future__ import annotations

import pytest

from auth.models import Role, User
from auth.service import is_admin, require_admin, sign_in, sign_out, verify_token
from auth.store import UserStore
from auth.tokens import create_access_token, decode_access_token, hash_password
from core.errors import Forbidden, InvalidCredentials, TokenExpired, Unauthorized


@pytest.fixture
def ann(user_store: UserStore) -> User:
    user_id = user_store.create_user(
        User(name="Ann", email="a@x.com", hashed_password=hash_password("Passw0rd1"))
    )
    return user_store.get_by_id(user_id)


class TestSignIn:
    def test_sign_in_then_verify(self, user_store: UserStore, ann: User) -> None:
        result = sign_in(user_store, "a@x.com", "Passw0rd1")
        assert result.user.id == ann.id
        assert result.user.last_login is not None
        assert verify_token(user_store, result.token).id == ann.id

    def test_sign_in_email_is_case_insensitive(self, user_store: UserStore, ann: User) -> None:
        assert sign_in(user_store, "A@X.COM", "Passw0rd1").user.id == ann.id

    def test_wrong_password_and_unknown_email_look_the_same(self, user_store: UserStore, ann: User) -> None:
        with pytest.raises(InvalidCredentials) as wrong_password:
            sign_in(user_store, "a@x.com", "wrong")
        with pytest.raises(InvalidCredentials) as unknown_email:
            sign_in(user_store, "nobody@x.com", "Passw0rd1")
        assert wrong_password.value.message == unknown_email.value.message == "Invalid credentials"
        assert wrong_password.value.status_code == 401

    def test_sign_out_message(self) -> None:
        assert sign_out() == "Signout successful"


class TestTokens:
    def test_round_trip(self) -> None:
        assert decode_access_token(create_access_token("abc123")) == "abc123"

    def test_expired_token(self) -> None:
        token = create_access_token("abc123", expire_seconds=-10)
        with pytest.raises(TokenExpired):
            decode_access_token(token)

    def test_expired_token_is_unauthorized(self) -> None:
        token = create_access_token("abc123", expire_seconds=-10)
        with pytest.raises(Unauthorized):
            decode_access_token(token)

    def test_tampered_token(self) -> None:
        header, payload, signature = create_access_token("abc123").split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(Unauthorized) as exc_info:
            decode_access_token(tampered)
        assert not isinstance(exc_info.value, TokenExpired)

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c"])
    def test_garbage_token(self, garbage: str) -> None:
        with pytest.raises(Unauthorized):
            decode_access_token(garbage)

    def test_token_for_deleted_user(self, user_store: UserStore, ann: User) -> None:
        token = create_access_token(ann.id)
        user_store.delete_user(ann.id)
        with pytest.raises(Unauthorized) as exc_info:
            verify_token(user_store, token)
        assert exc_info.value.message == "Not authorized, user not found"


class TestAdminGate:
    def test_user_is_not_admin(self, ann: User) -> None:
        assert not is_admin(ann)
        with pytest.raises(Forbidden) as exc_info:
            require_admin(ann)
        assert exc_info.value.message == "Not authorized as an admin"

    def test_admin_passes(self, user_store: UserStore, ann: User) -> None:
        user_store.update_user(ann.id, role=Role.admin)
        admin = user_store.get_by_id(ann.id)
        assert is_admin(admin)
        assert require_admin(admin) is admin

    def test_role_change_applies_to_existing_token(self, user_store: UserStore, ann: User) -> None:
        token = create_access_token(ann.id)
        user_store.update_user(ann.id, role=Role.admin)
        assert is_admin(verify_token(user_store, token))
