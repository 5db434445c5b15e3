"""
Unit tests for the client ``SessionController``.

The HTTP layer is replaced by a scripted fake so every test controls
exactly what the API answers. No network and no Flask app are involved.

Key SDET Concepts Demonstrated:
- Test doubles for an HTTP session (fake with recorded calls)
- Mocking side effects (network exceptions)
- State-machine assertions
- Concurrency testing of a single-flight refresh
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from typing import Any

import pytest
import requests
from requests.cookies import RequestsCookieJar

from taskboard_client import ApiError, ServiceUnavailable, SessionController, SessionState

pytestmark = pytest.mark.unit

USER = {"id": 3, "email": "user@example.com", "name": "Uma User", "role": "user"}
ADMIN = {"id": 1, "email": "admin@example.com", "name": "Ada Admin", "role": "admin"}


def make_response(status_code: int, payload: Any = None) -> requests.Response:
    """Build a real ``requests.Response`` with a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response._content = b"" if payload is None else json.dumps(payload).encode()
    response.headers["Content-Type"] = "application/json"
    return response


class FakeHttp:
    """
    Stand-in for ``requests.Session``.

    Each call is routed to *handler(method, path, headers, kwargs)*, which
    returns a response or raises. Calls are recorded for assertions.
    """

    def __init__(self, handler: Callable[..., requests.Response]):
        self.handler = handler
        self.calls: list[tuple[str, str, dict[str, str]]] = []
        self.cookies = RequestsCookieJar()
        self._lock = threading.Lock()

    def request(self, method, url, *, timeout=None, headers=None, **kwargs):
        path = url.split("localhost", 1)[-1]
        with self._lock:
            self.calls.append((method, path, dict(headers or {})))
        return self.handler(method, path, headers or {}, kwargs)

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call[0] == method and call[1] == path)


def api_handler(
    *,
    valid_token: str = "fresh-token",
    refresh_ok: bool = True,
    refreshed_token: str = "fresh-token",
    user: dict[str, Any] | None = None,
) -> Callable[..., requests.Response]:
    """A small in-memory API: protected calls succeed only with *valid_token*."""

    def handle(method, path, headers, kwargs):
        if path == "/api/auth/refresh":
            if not refresh_ok:
                return make_response(403, {"error": "Invalid refresh token"})
            return make_response(200, {"accessToken": refreshed_token, "user": user or USER})
        if path == "/api/auth/login":
            body = kwargs.get("json") or {}
            if body.get("password") != "UserPass123!":
                return make_response(401, {"error": "Invalid credentials"})
            return make_response(200, {"accessToken": valid_token, "user": user or USER})
        if path == "/api/auth/logout":
            return make_response(200, {"message": "Logged out"})
        if headers.get("Authorization") != f"Bearer {valid_token}":
            return make_response(403, {"error": "Invalid or expired token"})
        return make_response(200, {"tasks": [], "total": 0, "page": 1, "totalPages": 0})

    return handle


def make_controller(handler) -> tuple[SessionController, FakeHttp]:
    http = FakeHttp(handler)
    return SessionController("http://localhost", timeout=1, http=http), http


def authenticate(controller: SessionController, token: str) -> None:
    controller.apply_login({"accessToken": token, "user": dict(USER)})


class TestSessionLifecycle:
    """Start, login and logout transitions."""

    def test_new_controller_is_unauthenticated(self):
        """Test the initial state."""
        # Act
        controller, _ = make_controller(api_handler())

        # Assert
        assert controller.state is SessionState.UNAUTHENTICATED
        assert controller.access_token is None
        assert controller.user is None

    def test_start_resumes_session_from_refresh_cookie(self):
        """Test that start() authenticates when the cookie is still valid."""
        # Arrange
        controller, _ = make_controller(api_handler(user=ADMIN))

        # Act
        resumed = controller.start()

        # Assert
        assert resumed is True
        assert controller.is_authenticated
        assert controller.access_token == "fresh-token"
        assert controller.is_admin

    def test_state_is_refreshing_while_refresh_is_in_flight(self):
        """Test the REFRESHING transition seen from inside the refresh call."""
        # Arrange
        seen: list[SessionState] = []
        controller, _ = make_controller(None)
        base = api_handler()

        def handler(method, path, headers, kwargs):
            if path == "/api/auth/refresh":
                seen.append(controller.state)
                assert not controller._state_lock.locked()
            return base(method, path, headers, kwargs)

        controller.http.handler = handler

        # Act
        controller.start()

        # Assert
        assert seen == [SessionState.REFRESHING]
        assert controller.state is SessionState.AUTHENTICATED

    def test_start_without_valid_cookie_stays_logged_out(self):
        """Test that a failed silent refresh leaves the session unauthenticated."""
        # Arrange
        controller, _ = make_controller(api_handler(refresh_ok=False))

        # Act
        resumed = controller.start()

        # Assert
        assert resumed is False
        assert controller.state is SessionState.UNAUTHENTICATED

    def test_login_stores_token_and_profile(self):
        """Test that a successful login enters the authenticated state."""
        # Arrange
        controller, _ = make_controller(api_handler())

        # Act
        profile = controller.login("user@example.com", "UserPass123!")

        # Assert
        assert profile == USER
        assert controller.access_token == "fresh-token"
        assert controller.is_authenticated
        assert controller.is_admin is False

    def test_login_with_wrong_password_raises_api_error(self):
        """Test that rejected credentials surface the server message."""
        # Arrange
        controller, _ = make_controller(api_handler())

        # Act
        with pytest.raises(ApiError) as exc_info:
            controller.login("user@example.com", "nope")

        # Assert
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid credentials"
        assert controller.state is SessionState.UNAUTHENTICATED

    def test_logout_clears_state_and_cookies(self):
        """Test that logout drops the token, profile and refresh cookie."""
        # Arrange
        controller, http = make_controller(api_handler())
        authenticate(controller, "fresh-token")
        http.cookies.set("refreshToken", "abc")

        # Act
        controller.logout()

        # Assert
        assert controller.state is SessionState.UNAUTHENTICATED
        assert controller.access_token is None
        assert controller.user is None
        assert len(http.cookies) == 0
        assert http.count("POST", "/api/auth/logout") == 1

    def test_logout_clears_state_even_when_server_is_down(self):
        """Test that a network failure during logout still logs out locally."""

        # Arrange
        def down(method, path, headers, kwargs):
            raise requests.ConnectionError("refused")

        controller, _ = make_controller(down)
        authenticate(controller, "fresh-token")

        # Act
        controller.logout()

        # Assert
        assert controller.state is SessionState.UNAUTHENTICATED

    def test_apply_login_rejects_incomplete_payload(self):
        """Test that a payload without a token or user is refused."""
        # Arrange
        controller, _ = make_controller(api_handler())

        # Act & Assert
        with pytest.raises(ValueError):
            controller.apply_login({"user": USER})
        with pytest.raises(ValueError):
            controller.apply_login({"accessToken": "t"})


class TestAuthenticatedRequests:
    """Bearer attachment, silent refresh and retry."""

    def test_bearer_token_is_attached(self):
        """Test that the in-memory token is sent as a Bearer header."""
        # Arrange
        controller, http = make_controller(api_handler())
        authenticate(controller, "fresh-token")

        # Act
        response = controller.request("GET", "/api/tasks")

        # Assert
        assert response.status_code == 200
        assert http.calls[0][2]["Authorization"] == "Bearer fresh-token"

    def test_rejected_token_is_refreshed_and_retried_once(self):
        """Test the 403 -> refresh -> retry path."""
        # Arrange
        controller, http = make_controller(api_handler())
        authenticate(controller, "stale-token")

        # Act
        response = controller.request("GET", "/api/tasks")

        # Assert
        assert response.status_code == 200
        assert controller.access_token == "fresh-token"
        assert http.count("POST", "/api/auth/refresh") == 1
        assert http.count("GET", "/api/tasks") == 2

    def test_401_also_triggers_refresh(self):
        """Test that a missing-token answer is handled like an invalid one."""

        # Arrange
        def handler(method, path, headers, kwargs):
            if path == "/api/auth/refresh":
                return make_response(200, {"accessToken": "fresh-token", "user": USER})
            if "Authorization" not in headers:
                return make_response(401, {"error": "Access token required"})
            return make_response(200, {"ok": True})

        controller, http = make_controller(handler)

        # Act
        response = controller.request("GET", "/api/tasks")

        # Assert
        assert response.status_code == 200
        assert http.count("POST", "/api/auth/refresh") == 1

    def test_failed_refresh_logs_out_and_returns_original_failure(self):
        """Test that an unrecoverable session forces logout."""
        # Arrange
        controller, http = make_controller(api_handler(refresh_ok=False))
        authenticate(controller, "stale-token")

        # Act
        response = controller.request("GET", "/api/tasks")

        # Assert
        assert response.status_code == 403
        assert controller.state is SessionState.UNAUTHENTICATED
        assert http.count("GET", "/api/tasks") == 1
        assert http.count("POST", "/api/auth/logout") == 1

    def test_retry_happens_at_most_once(self):
        """Test that a retry rejected again is returned, not retried forever."""
        # Arrange
        controller, http = make_controller(
            api_handler(valid_token="never-issued", refreshed_token="also-rejected")
        )
        authenticate(controller, "stale-token")

        # Act
        response = controller.request("GET", "/api/tasks")

        # Assert
        assert response.status_code == 403
        assert http.count("GET", "/api/tasks") == 2
        assert http.count("POST", "/api/auth/refresh") == 1

    def test_non_auth_errors_are_not_retried(self):
        """Test that a 404 goes straight back to the caller."""

        # Arrange
        def handler(method, path, headers, kwargs):
            return make_response(404, {"error": "Task not found"})

        controller, http = make_controller(handler)
        authenticate(controller, "fresh-token")

        # Act
        response = controller.request("DELETE", "/api/tasks/99")

        # Assert
        assert response.status_code == 404
        assert len(http.calls) == 1

    def test_network_failure_raises_service_unavailable(self):
        """Test that timeouts are reported as a distinct error."""

        # Arrange
        def slow(method, path, headers, kwargs):
            raise requests.Timeout("too slow")

        controller, _ = make_controller(slow)
        authenticate(controller, "fresh-token")

        # Act & Assert
        with pytest.raises(ServiceUnavailable):
            controller.request("GET", "/api/tasks")
        assert controller.is_authenticated


class TestSingleFlightRefresh:
    """Concurrent failures share one refresh."""

    def test_stale_caller_reuses_already_refreshed_token(self):
        """Test that a refresh for an already-replaced token makes no HTTP call."""
        # Arrange
        controller, http = make_controller(api_handler())
        authenticate(controller, "fresh-token")

        # Act
        token = controller.refresh(stale_token="stale-token")

        # Assert
        assert token == "fresh-token"
        assert http.calls == []

    def test_concurrent_failures_trigger_one_refresh(self):
        """Test that parallel requests with the same stale token refresh once."""
        # Arrange
        controller, http = make_controller(api_handler())
        authenticate(controller, "stale-token")
        results: list[int] = []
        results_lock = threading.Lock()

        def worker():
            response = controller.request("GET", "/api/tasks")
            with results_lock:
                results.append(response.status_code)

        threads = [threading.Thread(target=worker) for _ in range(5)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        # Assert
        assert results == [200] * 5
        assert http.count("POST", "/api/auth/refresh") == 1
        assert controller.access_token == "fresh-token"
