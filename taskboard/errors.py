"""
JSON error responses for the Taskboard service.

Every error leaving the API uses the same ``{"error": "..."}`` envelope.
Route handlers build expected errors with ``json_error``; the handlers
registered here catch everything else (unknown routes, wrong methods,
malformed bodies, unhandled exceptions) so a client never receives an
HTML error page.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


def json_error(message: str, status_code: int) -> tuple[Response, int]:
    """
    Build a standardised JSON error response.

    Args:
        message: Human-readable description of the error.
        status_code: HTTP status code to return.

    Returns:
        A ``(Response, int)`` tuple suitable for returning directly
        from a Flask view function.
    """
    return jsonify({"error": message}), status_code


def register_error_handlers(app: Flask) -> None:
    """Install app-wide handlers that render errors as JSON."""

    @app.errorhandler(400)
    def bad_request(_: Exception) -> tuple[Response, int]:
        return json_error("Bad request", 400)

    @app.errorhandler(404)
    def not_found(_: Exception) -> tuple[Response, int]:
        return json_error("Resource not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_: Exception) -> tuple[Response, int]:
        return json_error("Method not allowed", 405)

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException) -> tuple[Response, int]:
        return json_error(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def internal_error(error: Exception) -> tuple[Response, int]:
        logger.exception("Internal server error: %s", error)
        return json_error("Internal server error", 500)
