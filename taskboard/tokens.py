"""
JWT issuing and verification for the Taskboard service.

A session is carried by two independently signed tokens:

    - the **access token** -- short-lived (15 minutes by default), claims
      ``id``, ``email``, ``name`` and ``role``; presented as a Bearer
      credential on every API call.
    - the **refresh token** -- long-lived (7 days by default), claims only
      ``id``; delivered as an http-only cookie and used solely to mint new
      access tokens.

Each kind is signed with its own HS256 secret, so a leaked access secret
cannot be used to mint refresh tokens and vice versa. Both carry the
canonical ``iat`` and ``exp`` claims as integer epoch seconds (RFC 7519
NumericDate). Neither is persisted: validity is decided by signature and
expiry alone.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

ALGORITHM = "HS256"

ACCESS_TOKEN_LIFETIME = timedelta(minutes=15)
REFRESH_TOKEN_LIFETIME = timedelta(days=7)

ACCESS_TOKEN_CLAIMS = ["id", "email", "name", "role", "iat", "exp"]
REFRESH_TOKEN_CLAIMS = ["id", "iat", "exp"]


class InvalidToken(Exception):
    """Raised when a token is malformed, tampered with, or expired."""


def _sign(payload: dict[str, Any], secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    expires_at = now + lifetime
    claims = {
        **payload,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def access_claims_for(user) -> dict[str, Any]:
    """Build the identity claim set carried by an access token for *user*."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }


def issue_access_token(
    claims: dict[str, Any],
    secret: str,
    lifetime: timedelta = ACCESS_TOKEN_LIFETIME,
) -> str:
    """
    Sign an access token carrying the identity claims.

    Args:
        claims: Mapping with ``id``, ``email``, ``name`` and ``role``.
            Extra keys are ignored.
        secret: The access-token signing secret.
        lifetime: Validity window from *now*.

    Returns:
        A compact JWS string for use in ``Authorization: Bearer`` headers.

    Raises:
        ValueError: If *claims* has no positive integer ``id``.
    """
    user_id = claims.get("id")
    if not isinstance(user_id, int) or user_id <= 0:
        raise ValueError("id must be a positive integer")

    payload = {
        "id": user_id,
        "email": claims.get("email"),
        "name": claims.get("name"),
        "role": claims.get("role"),
    }
    return _sign(payload, secret, lifetime)


def issue_refresh_token(
    user_id: int,
    secret: str,
    lifetime: timedelta = REFRESH_TOKEN_LIFETIME,
) -> str:
    """Sign a refresh token carrying only the user id."""
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")
    return _sign({"id": int(user_id)}, secret, lifetime)


def verify(
    token: str,
    secret: str,
    *,
    required_claims: list[str] | None = None,
    leeway: int = 0,
) -> dict[str, Any]:
    """
    Verify a token's signature and expiry and return its claims.

    Only HS256 is accepted, which rules out ``alg: none`` and
    algorithm-substitution tokens.

    Args:
        token: The compact JWS string.
        secret: The secret the token is expected to be signed with.
        required_claims: Claims that must be present. Defaults to the
            refresh-token claim set, which every token kind carries.
        leeway: Seconds of clock-skew tolerance applied to ``exp``/``iat``.

    Returns:
        The decoded claims.

    Raises:
        InvalidToken: If the token cannot be verified for any reason.
    """
    if not token:
        raise InvalidToken("Token is empty")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": required_claims or REFRESH_TOKEN_CLAIMS},
            leeway=leeway,
        )
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(str(exc)) from exc

    user_id = payload.get("id")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        raise InvalidToken("Invalid id claim")
    return payload
