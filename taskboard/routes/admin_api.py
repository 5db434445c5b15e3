"""
Admin-only API endpoints.

Every route stacks ``require_auth`` (identity) above ``require_admin``
(role check); the order matters because the admin gate inspects the
identity the session middleware attaches.

Endpoints:
    GET    /api/admin/stats        - User, task and completed-task counts
    GET    /api/admin/users        - All users (no password hashes)
    DELETE /api/admin/users/<id>   - Delete a user and all of their tasks
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, g, jsonify
from sqlalchemy import delete, func, select

from .. import db
from ..auth import require_admin, require_auth
from ..errors import json_error
from ..models import Task, TaskStatus, User

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin_api", __name__)


def _count(stmt) -> int:
    return db.session.scalar(stmt) or 0


@admin_bp.route("/stats", methods=["GET"])
@require_auth
@require_admin
def stats() -> tuple[Response, int]:
    """Return store-wide counts of users, tasks and completed tasks."""
    return jsonify({
        "users": _count(select(func.count()).select_from(User)),
        "tasks": _count(select(func.count()).select_from(Task)),
        "completedTasks": _count(
            select(func.count())
            .select_from(Task)
            .where(Task.status == TaskStatus.COMPLETED.value)
        ),
    }), 200


@admin_bp.route("/users", methods=["GET"])
@require_auth
@require_admin
def list_users() -> tuple[Response, int]:
    """Return every user's public profile, ordered by id."""
    users = db.session.scalars(select(User).order_by(User.id)).all()
    return jsonify([user.to_dict() for user in users]), 200


@admin_bp.route("/users/<int:user_id>", methods=["DELETE"])
@require_auth
@require_admin
def delete_user(user_id: int) -> tuple[Response, int]:
    """
    Delete a user together with all of their tasks.

    The tasks go first so the foreign key from ``tasks.user_id`` is never
    left dangling; both deletes are committed together.

    Returns:
        JSON confirmation message.
        400 if the admin targets their own account.
        404 if the user does not exist.
    """
    if user_id == g.user_id:
        return json_error("Cannot delete yourself", 400)

    user = db.session.get(User, user_id)
    if user is None:
        return json_error("User not found", 404)

    db.session.execute(delete(Task).where(Task.user_id == user_id))
    db.session.delete(user)
    db.session.commit()

    logger.info("Admin %s deleted user %s and their tasks", g.user_id, user_id)
    return jsonify({"message": "User and their tasks deleted"}), 200
