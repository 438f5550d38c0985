"""
client/api.py -- Data access layer for front ends and scripts.

PortfolioClient wraps one requests.Session and holds the session token
returned by sign-in or registration. Every call goes through _request(),
which attaches the bearer header when a token is held and unwraps the
{success, message, data} envelope.

Failures:
  - The server answered with success=false: ApiError carrying the server's
    message verbatim (e.g. "Invalid credentials"), its status and any
    per-field violations.
  - The request never got an answer (connection refused, timeout, DNS):
    ApiError("Network error. Please try again.") with status_code None.
There is no automatic retry.

Usage:
    client = PortfolioClient("http://localhost:3000")
    client.sign_in("ann@example.com", "S3cretPass")
    client.create("projects", {...})
    client.sign_out()
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger("portfolio.client")

NETWORK_ERROR = "Network error. Please try again."

COLLECTIONS = ("contacts", "projects", "qualifications")


class ApiError(Exception):
    """A failed API call. message is safe to show to the end user."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[list[dict[str, str]]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class PortfolioClient:
    """Stateful client: remembers the token and user of the last sign-in."""

    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token: Optional[str] = None
        self.user: Optional[dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Session view
    # ------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and bool(self.user) and self.user.get("role") == "admin"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a token and remember both. Returns the user."""
        data = self._request("POST", "/auth/signin", json={"email": email, "password": password})
        return self._remember(data)

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        """Create an account and sign in as it. Returns the user."""
        data = self._request("POST", "/api/users/register", json={"name": name, "email": email, "password": password})
        return self._remember(data)

    def sign_out(self) -> None:
        """Forget the token. The server keeps no session, so nothing is sent."""
        self.token = None
        self.user = None

    def get_profile(self) -> dict[str, Any]:
        self.user = self._request("GET", "/api/users/profile")
        return self.user

    def update_profile(self, **fields: Any) -> dict[str, Any]:
        self.user = self._request("PUT", "/api/users/profile", json=fields)
        return self.user

    # ------------------------------------------------------------------
    # Content collections
    # ------------------------------------------------------------------

    def list(self, collection: str) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/{_collection(collection)}")

    def get(self, collection: str, doc_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/{_collection(collection)}/{doc_id}")

    def create(self, collection: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", f"/api/{_collection(collection)}", json=payload)

    def update(self, collection: str, doc_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/api/{_collection(collection)}/{doc_id}", json=payload)

    def delete(self, collection: str, doc_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/api/{_collection(collection)}/{doc_id}")

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/api/health")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _remember(self, data: dict[str, Any]) -> dict[str, Any]:
        self.token = data["token"]
        self.user = data["user"]
        return self.user

    def _request(self, method: str, path: str, json: Optional[dict[str, Any]] = None) -> Any:
        """Send one request and return the envelope's data.

        Raises ApiError for transport failures and for any success=false
        envelope or non-2xx status.
        """
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            resp = self.session.request(method, self.base_url + path, json=json, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(NETWORK_ERROR) from e

        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise ApiError(resp.reason or "Server error", status_code=resp.status_code)

        if not resp.ok or body.get("success") is False:
            raise ApiError(
                body.get("message") or "Server error",
                status_code=resp.status_code,
                errors=body.get("errors"),
            )
        return body.get("data")


def _collection(name: str) -> str:
    if name not in COLLECTIONS:
        raise ValueError(f"Unknown collection {name!r}; expected one of {', '.join(COLLECTIONS)}")
    return name
