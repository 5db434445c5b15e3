"""
Client-side error types.

Server-reported failures (validation, auth, not found) and network
failures are kept apart: the first is shown to the user as-is, the second
is a "try again" case.
"""

from __future__ import annotations

import requests


class ApiError(Exception):
    """The API answered with a non-success status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_response(cls, response: requests.Response, default: str) -> ApiError:
        return cls(response.status_code, response_error_message(response, default))


class ServiceUnavailable(Exception):
    """The API could not be reached or did not answer in time."""


def response_error_message(response: requests.Response, default: str) -> str:
    """
    Extract the ``error`` field from a JSON error body if possible.

    Falls back to *default* when the body is not JSON or the field is
    missing or blank, so callers always have a human-readable message.
    """
    try:
        payload = response.json()
    except ValueError:
        return default
    if not isinstance(payload, dict):
        return default
    message = payload.get("error")
    if isinstance(message, str) and message.strip():
        return message
    return default
