"""
Client session controller.

Holds the in-memory access token and user profile, while the refresh
token lives in the HTTP session's cookie jar exactly as a browser would
keep the http-only cookie. The controller is a small state machine:

    UNAUTHENTICATED --start()/refresh()--> REFRESHING --ok--> AUTHENTICATED
                                                      --fail--> UNAUTHENTICATED
    UNAUTHENTICATED --login()--> AUTHENTICATED
    any state --logout()--> UNAUTHENTICATED

``request`` attaches the access token as a Bearer header. When the API
answers 401 or 403 it refreshes once and retries once; if the refresh
fails the session is logged out. Callers that fail with the same stale
token at the same time share a single refresh.
"""

from __future__ import annotations

import logging
import os
import threading
from enum import Enum
from typing import Any

import requests

from .errors import ApiError, ServiceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000"
AUTH_FAILURE_STATUSES = (401, 403)


class SessionState(str, Enum):
    """Lifecycle states of a client session."""

    UNAUTHENTICATED = "unauthenticated"
    REFRESHING = "refreshing"
    AUTHENTICATED = "authenticated"


class SessionController:
    """
    Owns one user's session against the Taskboard API.

    Args:
        base_url: API root. Defaults to ``TASKBOARD_API_URL`` or
            ``http://localhost:5000``.
        timeout: Per-request timeout in seconds. Defaults to
            ``TASKBOARD_API_TIMEOUT`` or 5.
        http: The :class:`requests.Session` to use; its cookie jar holds
            the refresh cookie.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ):
        self.base_url = (base_url or os.environ.get("TASKBOARD_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = (
            timeout
            if timeout is not None
            else float(os.environ.get("TASKBOARD_API_TIMEOUT", "5"))
        )
        self.http = http or requests.Session()
        self.state = SessionState.UNAUTHENTICATED
        self.user: dict[str, Any] | None = None
        self.access_token: str | None = None
        self._state_lock = threading.Lock()
        self._refresh_lock = threading.Lock()

    # -----------------------------------------------------------------
    # State
    # -----------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def is_admin(self) -> bool:
        return bool(self.user) and self.user.get("role") == "admin"

    def apply_login(self, payload: dict[str, Any]) -> None:
        """Enter the authenticated state from a login or refresh response."""
        token = payload.get("accessToken")
        user = payload.get("user")
        if not token or not isinstance(user, dict):
            raise ValueError("Session payload must carry 'accessToken' and 'user'")
        with self._state_lock:
            self.access_token = token
            self.user = user
            self.state = SessionState.AUTHENTICATED

    def _clear(self) -> None:
        with self._state_lock:
            self.access_token = None
            self.user = None
            self.state = SessionState.UNAUTHENTICATED

    # -----------------------------------------------------------------
    # HTTP
    # -----------------------------------------------------------------

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Perform one HTTP call with the configured timeout.

        Raises:
            ServiceUnavailable: On timeouts and network-level failures.
        """
        try:
            return self.http.request(method, self.url(path), timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise ServiceUnavailable("The server timed out. Please try again.") from exc
        except requests.RequestException as exc:
            raise ServiceUnavailable("The server is unavailable. Please try again later.") from exc

    @staticmethod
    def _with_bearer(headers: dict[str, str] | None, token: str | None) -> dict[str, str]:
        merged = {"Accept": "application/json", **(headers or {})}
        if token:
            merged["Authorization"] = f"Bearer {token}"
        return merged

    # -----------------------------------------------------------------
    # Session operations
    # -----------------------------------------------------------------

    def start(self) -> bool:
        """
        Try to resume a session from the refresh cookie.

        Returns:
            ``True`` when the session is now authenticated.
        """
        return self.refresh() is not None

    def register(self, email: str, password: str, name: str) -> dict[str, Any]:
        """
        Create an account. Does not log in.

        Returns:
            ``{"id": ..., "message": ..., "role": ...}``.
        """
        response = self._send(
            "POST",
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        if response.status_code != 201:
            raise ApiError.from_response(response, "Registration failed")
        return response.json()

    def login(self, email: str, password: str) -> dict[str, Any]:
        """
        Log in with credentials.

        Returns:
            The user profile.

        Raises:
            ApiError: On rejected credentials or invalid input.
            ServiceUnavailable: When the API cannot be reached.
        """
        response = self._send(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        if response.status_code != 200:
            raise ApiError.from_response(response, "Login failed")
        self.apply_login(response.json())
        return self.user

    def logout(self) -> None:
        """Log out on the server, then clear local state whatever happened."""
        try:
            self._send("POST", "/api/auth/logout")
        except ServiceUnavailable as exc:
            logger.warning("Server logout failed: %s", exc)
        finally:
            self.http.cookies.clear()
            self._clear()

    def refresh(self, stale_token: str | None = None) -> str | None:
        """
        Obtain a new access token from the refresh cookie.

        Only one refresh runs at a time. A caller passing the token its
        request failed with gets the already-refreshed token if another
        caller replaced it in the meantime, instead of refreshing again.

        Args:
            stale_token: The access token that was just rejected.

        Returns:
            The new access token, or ``None`` when the refresh failed (the
            session is then unauthenticated).
        """
        with self._refresh_lock:
            current = self.access_token
            if current and current != stale_token and self.is_authenticated:
                return current

            with self._state_lock:
                self.state = SessionState.REFRESHING
            try:
                response = self._send("POST", "/api/auth/refresh")
            except ServiceUnavailable as exc:
                logger.warning("Silent refresh failed: %s", exc)
                self._clear()
                return None

            if response.status_code != 200:
                self._clear()
                return None

            try:
                self.apply_login(response.json())
            except ValueError:
                logger.warning("Malformed refresh response")
                self._clear()
                return None
            return self.access_token

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Call an authenticated endpoint.

        On 401/403 this refreshes once and retries once; a failed refresh
        forces logout and the original failed response is returned.
        """
        headers = kwargs.pop("headers", None)
        token = self.access_token
        response = self._send(method, path, headers=self._with_bearer(headers, token), **kwargs)
        if response.status_code not in AUTH_FAILURE_STATUSES:
            return response

        new_token = self.refresh(stale_token=token)
        if new_token is None:
            self.logout()
            return response

        return self._send(method, path, headers=self._with_bearer(headers, new_token), **kwargs)
