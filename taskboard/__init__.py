"""
Taskboard Flask application factory.

Provides the ``create_app`` factory used to build the REST service: it
loads configuration, binds the shared SQLAlchemy instance, registers the
auth, task and admin blueprints, installs the JSON error handlers, and
initialises the schema once before the application serves traffic.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import click
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

from config import DEV_ACCESS_SECRET, DEV_REFRESH_SECRET, get_config

# Shared SQLAlchemy instance -- bound to a concrete app inside create_app()
db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    """SQLite ignores FOREIGN KEY clauses unless the pragma is set per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if not sqlite_path or sqlite_path == ":memory:":
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def _check_token_secrets(app: Flask) -> None:
    """
    Refuse configurations that would weaken the two-secret token design.

    The access and refresh secrets must differ, and production must never
    run with the development defaults.
    """
    access_secret = app.config["JWT_ACCESS_SECRET"]
    refresh_secret = app.config["JWT_REFRESH_SECRET"]
    if not access_secret or not refresh_secret:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set.")
    if access_secret == refresh_secret:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")
    if not app.debug and not app.testing and (
        access_secret == DEV_ACCESS_SECRET or refresh_secret == DEV_REFRESH_SECRET
    ):
        raise RuntimeError(
            "Development JWT secrets are not allowed in production: "
            "set JWT_ACCESS_SECRET and JWT_REFRESH_SECRET."
        )


def init_db() -> None:
    """
    Create the ``users`` and ``tasks`` tables if they do not exist.

    Idempotent; must run inside an application context.
    """
    # Models must be imported so their tables are registered on db.metadata
    from . import models  # noqa: F401

    db.create_all()
    logger.info("Database schema initialised")


@click.command("init-db")
def init_db_command() -> None:
    """Create the database schema (safe to run repeatedly)."""
    init_db()
    click.echo("Initialised the database.")


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Taskboard application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.

    Returns:
        Configured Flask application instance with its schema initialised.
    """
    app = Flask(__name__, instance_relative_config=True)

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    _check_token_secrets(app)

    logger.info("Creating app with config: %s", config_class.__name__)

    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    from .errors import register_error_handlers
    from .routes.admin_api import admin_bp
    from .routes.auth_api import auth_bp
    from .routes.tasks_api import tasks_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(tasks_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    register_error_handlers(app)
    app.cli.add_command(init_db_command)

    # Schema creation is a start-up step, never a per-request check
    with app.app_context():
        init_db()

    return app
