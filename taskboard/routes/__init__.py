"""
Routes package for the Taskboard service.

This package contains route blueprints:
- auth_api: registration, login, token refresh and logout
- tasks_api: owner-scoped task listing and mutation, plus the health check
- admin_api: admin-only statistics and user management
"""

from __future__ import annotations

from typing import Any

from flask import request

NOT_AN_OBJECT_ERROR = "Request body must be a JSON object"


def json_object_body() -> dict[str, Any] | None:
    """
    Read the request body as a JSON object.

    A missing or unparseable body reads as ``{}`` so the required-field
    checks report it. Any other JSON value (a list, string or number)
    returns ``None``.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return data


def validate_required_fields(
    data: dict[str, Any], required_fields: list[str]
) -> str | None:
    """
    Check that all *required_fields* are present and non-blank in *data*.

    Returns:
        An error message naming the first missing or blank field, or
        ``None`` if all required fields are valid.
    """
    for field in required_fields:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            return f"'{field}' is required"
    return None
