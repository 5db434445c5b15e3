"""
Data views over the Taskboard API.

``TaskBoard`` backs the task list and editor, ``AdminPanel`` backs the
admin statistics and user table. Both are thin: they shape requests,
send them through the ``SessionController`` (which handles tokens and
silent refresh), and turn non-success responses into ``ApiError``.
"""

from __future__ import annotations

from typing import Any

import requests

from .errors import ApiError
from .session import SessionController


def _json_or_raise(response: requests.Response, expected: int, default_error: str) -> Any:
    if response.status_code != expected:
        raise ApiError.from_response(response, default_error)
    return response.json()


class TaskBoard:
    """The signed-in user's tasks."""

    def __init__(self, session: SessionController):
        self.session = session

    def list_tasks(
        self,
        *,
        status: str = "all",
        search: str = "",
        page: int = 1,
        limit: int = 10,
    ) -> dict[str, Any]:
        """
        Fetch one page of tasks.

        Returns:
            ``{"tasks": [...], "total": n, "page": p, "totalPages": t}``.
            Pages past the end come back with an empty ``tasks`` list.
        """
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status and status != "all":
            params["status"] = status
        if search:
            params["search"] = search
        response = self.session.request("GET", "/api/tasks", params=params)
        return _json_or_raise(response, 200, "Failed to load tasks")

    def create_task(self, title: str, description: str = "") -> dict[str, Any]:
        response = self.session.request(
            "POST", "/api/tasks", json={"title": title, "description": description}
        )
        return _json_or_raise(response, 201, "Failed to create task")

    def update_task(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        status: str | None = None,
    ) -> dict[str, Any]:
        """Send only the fields that were given; the rest stay unchanged."""
        changes = {
            key: value
            for key, value in (
                ("title", title),
                ("description", description),
                ("status", status),
            )
            if value is not None
        }
        response = self.session.request("PATCH", f"/api/tasks/{task_id}", json=changes)
        return _json_or_raise(response, 200, "Failed to update task")

    def toggle_task(self, task_id: int) -> dict[str, Any]:
        response = self.session.request("PATCH", f"/api/tasks/{task_id}/toggle")
        return _json_or_raise(response, 200, "Failed to update task")

    def delete_task(self, task_id: int) -> None:
        response = self.session.request("DELETE", f"/api/tasks/{task_id}")
        _json_or_raise(response, 200, "Failed to delete task")


class AdminPanel:
    """
    Admin statistics and user management.

    Calls made from a non-admin session fail locally with a 403
    ``ApiError`` instead of reaching the server.
    """

    def __init__(self, session: SessionController):
        self.session = session

    def _request(self, method: str, path: str) -> requests.Response:
        if not self.session.is_admin:
            raise ApiError(403, "Admin access required")
        return self.session.request(method, path)

    def stats(self) -> dict[str, int]:
        response = self._request("GET", "/api/admin/stats")
        return _json_or_raise(response, 200, "Failed to load statistics")

    def users(self) -> list[dict[str, Any]]:
        response = self._request("GET", "/api/admin/users")
        return _json_or_raise(response, 200, "Failed to load users")

    def delete_user(self, user_id: int) -> None:
        """
        Delete another user and all of their tasks.

        Raises:
            ApiError: 400 when targeting the signed-in admin's own account.
        """
        response = self._request("DELETE", f"/api/admin/users/{user_id}")
        _json_or_raise(response, 200, "Failed to delete user")
