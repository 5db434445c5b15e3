"""
REST API endpoints for task management.

Every task endpoint requires an access token, and every query is scoped
to the authenticated user. A task owned by someone else is reported as
"Task not found", exactly like a task that does not exist, so the API
never reveals which ids are taken.

Endpoints:
    GET    /api/health              - Health check (public)
    GET    /api/tasks               - List tasks (status, search, page, limit)
    POST   /api/tasks               - Create a task
    PATCH  /api/tasks/<id>          - Partially update a task
    PATCH  /api/tasks/<id>/toggle   - Flip a task between todo and completed
    DELETE /api/tasks/<id>          - Delete a task
"""

from __future__ import annotations

import logging
import os
from typing import Any

from flask import Blueprint, Response, current_app, g, jsonify, request
from sqlalchemy import select

from .. import db
from ..auth import require_auth
from ..errors import json_error
from ..models import Task, TaskStatus
from ..queries import list_tasks
from . import NOT_AN_OBJECT_ERROR, json_object_body

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks_api", __name__)

VALID_STATUSES = [s.value for s in TaskStatus]


# =====================================================================
# Helper Functions
# =====================================================================


def _positive_int_arg(name: str, default: int) -> int:
    """
    Read a positive integer query parameter.

    Raises:
        ValueError: If the value is not an integer or is below 1.
    """
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    value = int(raw)
    if value < 1:
        raise ValueError(f"'{name}' must be a positive integer")
    return value


def validate_task_data(data: dict[str, Any]) -> str | None:
    """
    Validate the optional fields of a task payload.

    Returns:
        An error message, or ``None`` when the payload is acceptable.
    """
    if "title" in data and data["title"] is not None:
        if not isinstance(data["title"], str):
            return "'title' must be a string"
        if len(data["title"]) > 200:
            return "Title must be 200 characters or less"

    if "description" in data and data["description"] is not None:
        if not isinstance(data["description"], str):
            return "'description' must be a string"

    if data.get("status") and data["status"] not in VALID_STATUSES:
        return f"Invalid status. Must be one of: {VALID_STATUSES}"

    return None


def _owned_task(task_id: int) -> Task | None:
    """Return the task if it exists and belongs to the authenticated user."""
    return db.session.scalar(
        select(Task).where(Task.id == task_id, Task.user_id == g.user_id)
    )


# =====================================================================
# API Endpoints
# =====================================================================


@tasks_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint for deployment verification."""
    return jsonify({
        "status": "healthy",
        "service": "taskboard",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
    }), 200


@tasks_bp.route("/tasks", methods=["GET"])
@require_auth
def get_tasks() -> tuple[Response, int]:
    """
    List the authenticated user's tasks.

    Query Parameters:
        status: ``todo``, ``completed`` or ``all`` (default: all)
        search: case-insensitive substring of the title or description
        page: 1-indexed page number (default 1)
        limit: page size (default 10)

    Returns:
        JSON object with ``tasks``, ``total``, ``page`` and ``totalPages``.
        A page past the end yields an empty ``tasks`` list.
    """
    try:
        page = _positive_int_arg("page", 1)
        limit = _positive_int_arg("limit", current_app.config["TASKS_DEFAULT_PAGE_SIZE"])
    except ValueError:
        return json_error("'page' and 'limit' must be positive integers", 400)

    max_limit = current_app.config["TASKS_MAX_PAGE_SIZE"]
    if limit > max_limit:
        return json_error(f"'limit' must be {max_limit} or less", 400)

    result = list_tasks(
        g.user_id,
        status=request.args.get("status"),
        search=request.args.get("search"),
        page=page,
        limit=limit,
    )
    return jsonify(result.to_dict()), 200


@tasks_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    """
    Create a new task for the authenticated user.

    Request Body (JSON):
        title: Task title (required)
        description: Task description (optional, default "")

    Returns:
        The created task with status 201, or 400 if the title is missing.
    """
    data = json_object_body()
    if data is None:
        return json_error(NOT_AN_OBJECT_ERROR, 400)

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return json_error("Title is required", 400)

    error = validate_task_data(data)
    if error:
        return json_error(error, 400)

    task = Task(
        user_id=g.user_id,
        title=title,
        description=data.get("description") or "",
        status=TaskStatus.TODO.value,
    )
    db.session.add(task)
    db.session.commit()

    logger.info("Created task %s for user %s", task.id, g.user_id)
    return jsonify(task.to_dict()), 201


@tasks_bp.route("/tasks/<int:task_id>", methods=["PATCH"])
@require_auth
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Partially update a task.

    Omitted fields keep their current value; a blank title also keeps the
    current title, while ``description`` may be cleared with ``""``.

    Returns:
        The updated task, 404 if not found or not owned, 400 on an
        invalid status.
    """
    task = _owned_task(task_id)
    if not task:
        logger.warning("Task %s not found for user %s", task_id, g.user_id)
        return json_error("Task not found", 404)

    data = json_object_body()
    if data is None:
        return json_error(NOT_AN_OBJECT_ERROR, 400)
    error = validate_task_data(data)
    if error:
        return json_error(error, 400)

    if isinstance(data.get("title"), str) and data["title"].strip():
        task.title = data["title"]
    if data.get("description") is not None:
        task.description = data["description"]
    if data.get("status"):
        task.status = data["status"]

    db.session.commit()
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/tasks/<int:task_id>/toggle", methods=["PATCH"])
@require_auth
def toggle_task(task_id: int) -> tuple[Response, int]:
    """Flip a task between ``todo`` and ``completed``."""
    task = _owned_task(task_id)
    if not task:
        logger.warning("Task %s not found for user %s", task_id, g.user_id)
        return json_error("Task not found", 404)

    task.toggle()
    db.session.commit()
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: int) -> tuple[Response, int]:
    """
    Delete a task owned by the authenticated user.

    Returns:
        JSON confirmation message, or 404 if not found or not owned.
    """
    task = _owned_task(task_id)
    if not task:
        logger.warning("Task %s not found for user %s", task_id, g.user_id)
        return json_error("Task not found", 404)

    db.session.delete(task)
    db.session.commit()

    logger.info("Deleted task %s", task_id)
    return jsonify({"message": "Task deleted"}), 200
