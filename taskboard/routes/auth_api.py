"""
Authentication API endpoints.

Endpoints:
    POST /api/auth/register -- Create a user account (first user is admin).
    POST /api/auth/login    -- Check credentials, return an access token
                               and set the refresh-token cookie.
    POST /api/auth/refresh  -- Mint a new access token from the cookie.
    POST /api/auth/logout   -- Clear the refresh-token cookie.

The refresh token is stateless: logout clears the browser's cookie but a
captured refresh token stays valid until it expires.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from .. import db
from ..errors import json_error
from ..models import User, UserRole
from ..tokens import (
    REFRESH_TOKEN_CLAIMS,
    InvalidToken,
    access_claims_for,
    issue_access_token,
    issue_refresh_token,
    verify,
)
from . import NOT_AN_OBJECT_ERROR, json_object_body, validate_required_fields

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_api", __name__)


# =====================================================================
# Helper Functions
# =====================================================================


def _refresh_lifetime() -> timedelta:
    return timedelta(days=current_app.config["JWT_REFRESH_EXPIRY_DAYS"])


def _access_token_for(user: User) -> str:
    return issue_access_token(
        access_claims_for(user),
        current_app.config["JWT_ACCESS_SECRET"],
        timedelta(minutes=current_app.config["JWT_ACCESS_EXPIRY_MINUTES"]),
    )


def _set_refresh_cookie(response: Response, user: User) -> None:
    """Attach the http-only refresh-token cookie to *response*."""
    lifetime = _refresh_lifetime()
    token = issue_refresh_token(user.id, current_app.config["JWT_REFRESH_SECRET"], lifetime)
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite=current_app.config["REFRESH_COOKIE_SAMESITE"],
    )


def _session_payload(user: User) -> dict:
    return {"accessToken": _access_token_for(user), "user": user.to_dict()}


# =====================================================================
# API Endpoints
# =====================================================================


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new user account.

    Expects a JSON body with ``email``, ``password`` and ``name``. The
    first account created in an empty store becomes ``admin``; every
    later account is a plain ``user``.

    Returns:
        201 with ``id``, ``message`` and ``role`` on success.
        400 if a field is missing or the email is already registered.
    """
    data = json_object_body()
    if data is None:
        return json_error(NOT_AN_OBJECT_ERROR, 400)
    missing = validate_required_fields(data, ["email", "password", "name"])
    if missing:
        return json_error(missing, 400)

    email = data["email"].strip()
    name = data["name"].strip()

    if db.session.scalar(select(User).where(User.email == email)):
        return json_error("Email already exists", 400)

    user_count = db.session.scalar(select(func.count()).select_from(User))
    role = UserRole.ADMIN if user_count == 0 else UserRole.USER

    user = User(email=email, name=name, role=role.value)
    user.set_password(data["password"])
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.session.rollback()
        return json_error("Email already exists", 400)

    logger.info("Registered user %s with role %s", user.id, user.role)
    return jsonify({"id": user.id, "message": "User registered", "role": user.role}), 201


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate a user and open a session.

    The deliberately vague ``"Invalid credentials"`` message avoids
    revealing whether the email exists.

    Returns:
        200 with ``accessToken`` and ``user``, plus the refresh cookie.
        400 if required fields are missing.
        401 if credentials are incorrect.
    """
    data = json_object_body()
    if data is None:
        return json_error(NOT_AN_OBJECT_ERROR, 400)
    missing = validate_required_fields(data, ["email", "password"])
    if missing:
        return json_error(missing, 400)

    user = db.session.scalar(select(User).where(User.email == data["email"].strip()))
    if not user or not user.check_password(data["password"]):
        logger.warning("Failed login attempt")
        return json_error("Invalid credentials", 401)

    response = jsonify(_session_payload(user))
    _set_refresh_cookie(response, user)
    return response, 200


@auth_bp.route("/refresh", methods=["POST"])
def refresh() -> tuple[Response, int]:
    """
    Mint a new access token from the refresh-token cookie.

    The user is re-read from the store so the new token carries current
    claims, and a deleted user cannot refresh.

    Returns:
        200 with ``accessToken`` and ``user``.
        403 if the cookie is missing or invalid, or the user no longer
        exists.
    """
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if not token:
        return json_error("Refresh token required", 403)

    try:
        claims = verify(
            token,
            current_app.config["JWT_REFRESH_SECRET"],
            required_claims=REFRESH_TOKEN_CLAIMS,
            leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 0)),
        )
    except InvalidToken as exc:
        logger.warning("Rejected refresh token: %s", exc)
        return json_error("Invalid refresh token", 403)

    user = db.session.get(User, claims["id"])
    if user is None:
        return json_error("User not found", 403)

    return jsonify(_session_payload(user)), 200


@auth_bp.route("/logout", methods=["POST"])
def logout() -> tuple[Response, int]:
    """Clear the refresh-token cookie. Always succeeds."""
    response = jsonify({"message": "Logged out"})
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite=current_app.config["REFRESH_COOKIE_SAMESITE"],
    )
    return response, 200
