"""
Database models for the Taskboard service.

Defines the SQLAlchemy ORM models backing the credential store: ``User``
(credentials, display name, role) and ``Task`` (a personal to-do item
owned by exactly one user).

Key Concepts:
- Werkzeug password hashing (salted, one-way)
- ``str, Enum`` inheritance for JSON-friendly enumeration values
- Safe serialisation that excludes sensitive fields
- Timezone-aware datetime handling for SQLite compatibility
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


class UserRole(str, Enum):
    """Roles a user can hold. Assigned at registration and never changed."""

    USER = "user"
    ADMIN = "admin"


class TaskStatus(str, Enum):
    """Enumeration of possible task statuses."""

    TODO = "todo"
    COMPLETED = "completed"

    def toggled(self) -> TaskStatus:
        """Return the opposite status."""
        if self is TaskStatus.COMPLETED:
            return TaskStatus.TODO
        return TaskStatus.COMPLETED


class User(db.Model):
    """
    Registered user of the system.

    Passwords are never stored in plain text -- only a salted hash is
    persisted, and ``to_dict`` omits it so the output can be returned in
    API responses as-is.

    Attributes:
        id: Auto-incrementing integer primary key.
        email: Unique login identifier, indexed for login lookups.
        password_hash: Werkzeug-generated hash of the user's password.
        name: Display name.
        role: ``user`` or ``admin`` (see ``UserRole``).
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    email: str = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    name: str = db.Column(db.String(120), nullable=False)
    role: str = db.Column(db.String(20), nullable=False, default=UserRole.USER.value)

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """
        Verify a plain-text password against the stored hash.

        Args:
            password: The candidate plain-text password.

        Returns:
            ``True`` if the password matches, ``False`` otherwise.
        """
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """Return the public profile: ``id``, ``email``, ``name`` and ``role``."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class Task(db.Model):
    """
    Task owned by a single user.

    Attributes:
        id: Auto-incrementing primary key.
        user_id: Owning user. Every query in the API layer filters by this
            value (sourced from the access token).
        title: Short summary of the task.
        description: Optional longer text, empty string when not given.
        status: ``todo`` or ``completed`` (see ``TaskStatus``).
        created_at: Server-assigned creation timestamp (UTC).
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    user_id: int = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    title: str = db.Column(db.String(200), nullable=False)
    description: str = db.Column(db.Text, nullable=False, default="")
    status: str = db.Column(
        db.String(20),
        nullable=False,
        default=TaskStatus.TODO.value
    )
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    @staticmethod
    def _to_utc_iso(value: datetime | None) -> str | None:
        """
        Convert datetime to an ISO-8601 UTC string.

        SQLite returns naive datetime values even when timezone-aware
        columns are declared, so naive values are assumed to be UTC.
        """
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.isoformat()

    def toggle(self) -> None:
        """Flip the status between todo and completed."""
        self.status = TaskStatus(self.status).toggled().value

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the task to a dictionary representation.

        Returns:
            Dictionary containing all task fields.
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "created_at": self._to_utc_iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title}>"
