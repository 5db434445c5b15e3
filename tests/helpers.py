"""Token and header helpers shared by the test suites."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

DEFAULT_TEST_USER_ID = 1
DEFAULT_TEST_EMAIL = "test_user@example.com"


def _sign(payload: dict[str, Any], secret: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        **payload,
        "iat": int((now - timedelta(seconds=1)).timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def create_access_token(
    secret: str,
    *,
    user_id: int = DEFAULT_TEST_USER_ID,
    email: str = DEFAULT_TEST_EMAIL,
    name: str = "Test User",
    role: str = "user",
    expired: bool = False,
) -> str:
    """Create a signed HS256 access token with the identity claims."""
    expires_in = timedelta(minutes=-16) if expired else timedelta(minutes=15)
    payload = {"id": int(user_id), "email": email, "name": name, "role": role}
    return _sign(payload, secret, expires_in)


def create_refresh_token(
    secret: str,
    *,
    user_id: int = DEFAULT_TEST_USER_ID,
    expired: bool = False,
) -> str:
    """Create a signed HS256 refresh token carrying only the user id."""
    expires_in = timedelta(days=-1) if expired else timedelta(days=7)
    return _sign({"id": int(user_id)}, secret, expires_in)


def access_token_for(user, secret: str, *, expired: bool = False) -> str:
    """Create an access token whose claims mirror a stored ``User``."""
    return create_access_token(
        secret,
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        expired=expired,
    )


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
