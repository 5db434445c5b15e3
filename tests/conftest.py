"""
Shared pytest fixtures for the Taskboard test suite.

Fixtures follow the Arrange-Act-Assert (AAA) pattern and keep every test
isolated: the application is created once per session, while the schema
is created before and dropped after each test.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Factory fixtures for users and tasks with Faker data
- Token fixtures minted from the configured secrets
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime

import pytest
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from taskboard import create_app, db
from taskboard.models import Task, TaskStatus, User, UserRole
from tests.helpers import access_token_for, auth_headers

fake = Faker()


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """
    Create the application instance for the test session.

    The same app is reused by every test; per-test isolation comes from
    ``db_session``.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide a Flask test client; cookies never leak between tests."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test.

    Creates all tables before the test, then rolls back any uncommitted
    changes and drops all tables afterward.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def user_factory(db_session) -> Callable[..., User]:
    """
    Factory fixture that creates and persists User records.

    Every argument is optional; emails are unique Faker addresses unless
    one is given.
    """

    def _create_user(
        email: str | None = None,
        name: str | None = None,
        password: str = "StrongPass123!",
        role: str = UserRole.USER.value,
    ) -> User:
        user = User(
            email=email or fake.unique.email(),
            name=name or fake.name(),
            role=role,
        )
        user.set_password(password)
        db_session.session.add(user)
        db_session.session.commit()
        return user

    return _create_user


@pytest.fixture
def task_factory(db_session) -> Callable[..., Task]:
    """
    Factory fixture that creates Task rows owned by a given user.

    ``created_at`` can be pinned so ordering assertions are deterministic.
    """

    def _create_task(
        owner: User,
        *,
        title: str | None = None,
        description: str | None = None,
        status: str = TaskStatus.TODO.value,
        created_at: datetime | None = None,
    ) -> Task:
        task = Task(
            user_id=owner.id,
            title=title or fake.sentence(nb_words=4),
            description=fake.paragraph() if description is None else description,
            status=status,
        )
        if created_at is not None:
            task.created_at = created_at
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def admin_user(user_factory) -> User:
    """The store's admin account."""
    return user_factory(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN.value)


@pytest.fixture
def regular_user(user_factory) -> User:
    """A plain user account with a known password."""
    return user_factory(email="user@example.com", name="Uma User", password="UserPass123!")


@pytest.fixture
def other_user(user_factory) -> User:
    """A second plain user, for tenant-isolation checks."""
    return user_factory(email="other@example.com", name="Oscar Other")


@pytest.fixture
def headers_for(app) -> Callable[[User], dict[str, str]]:
    """Return a function building bearer headers for a stored user."""

    def _headers(user: User) -> dict[str, str]:
        return auth_headers(access_token_for(user, app.config["JWT_ACCESS_SECRET"]))

    return _headers


@pytest.fixture
def user_headers(headers_for, regular_user) -> dict[str, str]:
    return headers_for(regular_user)


@pytest.fixture
def admin_headers(headers_for, admin_user) -> dict[str, str]:
    return headers_for(admin_user)
