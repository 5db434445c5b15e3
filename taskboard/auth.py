"""
Request authentication decorators for the Taskboard API.

``require_auth`` is the session middleware: it reads the
``Authorization: Bearer <token>`` header, verifies the access token, and
stores the identity claims on ``flask.g`` for the rest of the request.
``require_admin`` is the admin gate layered on top of it.

The middleware distinguishes two failure modes:

    - no token at all            -> 401 "Access token required"
    - token present but invalid  -> 403 "Invalid or expired token"

The client relies on both codes to trigger a silent refresh.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Response, current_app, g, request

from .errors import json_error
from .models import UserRole
from .tokens import ACCESS_TOKEN_CLAIMS, InvalidToken, verify

logger = logging.getLogger(__name__)


def extract_bearer_token() -> str | None:
    """
    Extract the Bearer token from the current request's Authorization header.

    Returns:
        The raw JWT string, or ``None`` if the header is absent, uses
        another scheme, or is empty after stripping whitespace.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def verify_access_token(token: str) -> dict[str, Any]:
    """Verify *token* against the configured access secret."""
    return verify(
        token,
        current_app.config["JWT_ACCESS_SECRET"],
        required_claims=ACCESS_TOKEN_CLAIMS,
        leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 0)),
    )


def require_auth(view_func: Callable[..., tuple[Response, int] | Response]):
    """
    Decorator that enforces Bearer-token authentication on API endpoints.

    On success the decoded claims are stored as ``g.current_user`` and the
    user id as ``g.user_id``, so handlers never re-parse the token.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = extract_bearer_token()
        if token is None:
            return json_error("Access token required", 401)

        try:
            claims = verify_access_token(token)
        except InvalidToken as exc:
            logger.warning("Rejected access token: %s", exc)
            return json_error("Invalid or expired token", 403)

        g.current_user = claims
        g.user_id = claims["id"]
        return view_func(*args, **kwargs)

    return wrapper


def require_admin(view_func: Callable[..., tuple[Response, int] | Response]):
    """
    Decorator that admits only identities whose role is ``admin``.

    Must be applied *below* ``require_auth`` so it runs after the identity
    has been attached; without one the request is rejected.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        identity = g.get("current_user")
        if not identity or identity.get("role") != UserRole.ADMIN.value:
            return json_error("Admin access required", 403)
        return view_func(*args, **kwargs)

    return wrapper
