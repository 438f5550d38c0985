"""Unit tests for client/api.py -- PortfolioClient.

The session is a MagicMock so no server is needed. Covers:
- sign-in stores the token and user; later calls carry the bearer header
- is_authenticated / is_admin follow the stored user
- sign_out forgets the token without a request
- server failures surface the server message verbatim
- transport failures surface the generic network message
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from client.api import NETWORK_ERROR, ApiError, PortfolioClient


def _response(status: int, body) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.reason = "Reason"
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


def _signed_in(role: str = "user") -> tuple[PortfolioClient, MagicMock]:
    session = MagicMock()
    session.request.return_value = _response(
        200,
        {
            "success": True,
            "message": "Signin successful",
            "data": {"token": "tok123", "user": {"id": "u1", "email": "a@x.com", "role": role}},
        },
    )
    client = PortfolioClient("http://api.test/", session=session)
    client.sign_in("a@x.com", "Passw0rd1")
    return client, session


class TestSession:
    def test_sign_in_stores_token(self) -> None:
        client, session = _signed_in()
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "http://api.test/auth/signin")
        assert session.request.call_args.kwargs["json"] == {"email": "a@x.com", "password": "Passw0rd1"}
        assert client.token == "tok123"
        assert client.is_authenticated
        assert not client.is_admin

    def test_admin_view(self) -> None:
        client, _session = _signed_in(role="admin")
        assert client.is_admin

    def test_bearer_header_is_sent(self) -> None:
        client, session = _signed_in()
        session.request.return_value = _response(200, {"success": True, "count": 0, "data": []})
        assert client.list("projects") == []
        assert session.request.call_args.kwargs["headers"] == {"Authorization": "Bearer tok123"}

    def test_sign_out_forgets_token(self) -> None:
        client, session = _signed_in()
        calls = session.request.call_count
        client.sign_out()
        assert not client.is_authenticated
        assert not client.is_admin
        assert session.request.call_count == calls

    def test_anonymous_requests_have_no_header(self) -> None:
        session = MagicMock()
        session.request.return_value = _response(201, {"success": True, "data": {"id": "c1"}})
        client = PortfolioClient("http://api.test", session=session)
        assert client.create("contacts", {"firstname": "Ann"}) == {"id": "c1"}
        assert session.request.call_args.kwargs["headers"] == {}


class TestErrors:
    def test_server_message_is_verbatim(self) -> None:
        session = MagicMock()
        session.request.return_value = _response(401, {"success": False, "message": "Invalid credentials"})
        client = PortfolioClient("http://api.test", session=session)
        with pytest.raises(ApiError) as exc_info:
            client.sign_in("a@x.com", "wrong")
        assert exc_info.value.message == "Invalid credentials"
        assert exc_info.value.status_code == 401
        assert not client.is_authenticated

    def test_violations_are_exposed(self) -> None:
        session = MagicMock()
        errors = [{"field": "message", "message": "Message must be between 10 and 1000 characters"}]
        session.request.return_value = _response(400, {"success": False, "message": "Validation errors", "errors": errors})
        client = PortfolioClient("http://api.test", session=session)
        with pytest.raises(ApiError) as exc_info:
            client.create("contacts", {"message": "hi"})
        assert exc_info.value.errors == errors

    def test_network_failure(self) -> None:
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        client = PortfolioClient("http://api.test", session=session)
        with pytest.raises(ApiError) as exc_info:
            client.health()
        assert exc_info.value.message == NETWORK_ERROR
        assert exc_info.value.status_code is None

    def test_non_json_response(self) -> None:
        session = MagicMock()
        session.request.return_value = _response(502, ValueError("no json"))
        client = PortfolioClient("http://api.test", session=session)
        with pytest.raises(ApiError) as exc_info:
            client.health()
        assert exc_info.value.status_code == 502

    def test_unknown_collection(self) -> None:
        client = PortfolioClient("http://api.test", session=MagicMock())
        with pytest.raises(ValueError):
            client.list("users")
