"""
Owner-scoped task listing.

Builds the filtered, paginated task listing behind ``GET /api/tasks``.
Two statements share one set of filters: the row fetch (ordered newest
first, paginated) and the count used for ``total`` and ``total_pages``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from sqlalchemy import Select, func, or_, select

from . import db
from .models import Task

STATUS_ALL = "all"


@dataclass
class TaskPage:
    """One page of a task listing."""

    tasks: list[Task] = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0

    def to_dict(self) -> dict:
        return {
            "tasks": [task.to_dict() for task in self.tasks],
            "total": self.total,
            "page": self.page,
            "totalPages": self.total_pages,
        }


def _apply_filters(
    stmt: Select, owner_id: int, status: str | None, search: str | None
) -> Select:
    # Tenant isolation: only rows belonging to the requesting user.
    stmt = stmt.where(Task.user_id == owner_id)

    if status and status != STATUS_ALL:
        stmt = stmt.where(Task.status == status)

    if search:
        stmt = stmt.where(
            or_(
                Task.title.icontains(search, autoescape=True),
                Task.description.icontains(search, autoescape=True),
            )
        )
    return stmt


def list_tasks(
    owner_id: int,
    *,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> TaskPage:
    """
    Return one page of *owner_id*'s tasks matching the filters.

    Args:
        owner_id: The authenticated user's id.
        status: Exact status to match; ``None``, ``""`` or ``"all"``
            disable the filter.
        search: Case-insensitive substring matched against the title or
            the description. Wildcard characters match literally.
        page: 1-indexed page number. Pages past the end are empty.
        limit: Page size, at least 1.

    Returns:
        A ``TaskPage`` with the rows, the total match count, the requested
        page number and ``ceil(total / limit)``.
    """
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")

    rows_stmt = (
        _apply_filters(select(Task), owner_id, status, search)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    count_stmt = _apply_filters(
        select(func.count()).select_from(Task), owner_id, status, search
    )

    tasks = list(db.session.scalars(rows_stmt).all())
    total = db.session.scalar(count_stmt) or 0
    return TaskPage(
        tasks=tasks,
        total=total,
        page=page,
        total_pages=math.ceil(total / limit),
    )
