"""
Python client for the Taskboard REST API.

``SessionController`` owns the session (access token, user profile,
refresh cookie) and ``TaskBoard`` / ``AdminPanel`` are thin views over the
REST surface that go through it.
"""

from .errors import ApiError, ServiceUnavailable
from .session import SessionController, SessionState
from .views import AdminPanel, TaskBoard

__all__ = [
    "AdminPanel",
    "ApiError",
    "ServiceUnavailable",
    "SessionController",
    "SessionState",
    "TaskBoard",
]
