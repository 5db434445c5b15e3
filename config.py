"""
Application configuration module.

Defines configuration classes for the different environments
(development, testing, production). Every value is loaded from an
environment variable with a development default, so the same code base
can serve any environment by changing the environment alone.

The token settings come in pairs: the access token and the refresh token
are signed with distinct secrets and carry distinct lifetimes.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent

DEV_ACCESS_SECRET = "dev-access-secret-change-in-production-0001"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-in-production-0002"


def _env_flag(name: str, default: str) -> bool:
    """Read a boolean flag such as ``REFRESH_COOKIE_SECURE=true``."""
    return os.environ.get(name, default).strip().lower() == "true"


class Config:
    """Base configuration with default settings."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Default database location
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'taskboard.db'}"
    )

    # Access tokens are short-lived bearer credentials
    JWT_ACCESS_SECRET: str = os.environ.get("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_ACCESS_EXPIRY_MINUTES: int = int(os.environ.get("JWT_ACCESS_EXPIRY_MINUTES", "15"))

    # Refresh tokens live in an http-only cookie and only mint access tokens
    JWT_REFRESH_SECRET: str = os.environ.get("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_REFRESH_EXPIRY_DAYS: int = int(os.environ.get("JWT_REFRESH_EXPIRY_DAYS", "7"))

    # Seconds of tolerance for clock differences between issuer and verifier
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "0"))

    REFRESH_COOKIE_NAME: str = "refreshToken"
    REFRESH_COOKIE_SECURE: bool = _env_flag("REFRESH_COOKIE_SECURE", "true")
    REFRESH_COOKIE_SAMESITE: str = os.environ.get("REFRESH_COOKIE_SAMESITE", "None")

    TASKS_DEFAULT_PAGE_SIZE: int = int(os.environ.get("TASKS_DEFAULT_PAGE_SIZE", "10"))
    TASKS_MAX_PAGE_SIZE: int = int(os.environ.get("TASKS_MAX_PAGE_SIZE", "100"))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False
    # Local development usually runs over plain HTTP
    REFRESH_COOKIE_SECURE: bool = _env_flag("REFRESH_COOKIE_SECURE", "false")
    REFRESH_COOKIE_SAMESITE: str = os.environ.get("REFRESH_COOKIE_SAMESITE", "Lax")


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    # In-memory database by default; Flask-SQLAlchemy shares a single
    # connection for it so every test sees the same schema.
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")

    JWT_ACCESS_SECRET: str = os.environ.get(
        "TEST_JWT_ACCESS_SECRET", "test-access-secret-for-local-tests-0123456789"
    )
    JWT_REFRESH_SECRET: str = os.environ.get(
        "TEST_JWT_REFRESH_SECRET", "test-refresh-secret-for-local-tests-0123456789"
    )
    REFRESH_COOKIE_SECURE: bool = False
    REFRESH_COOKIE_SAMESITE: str = "Lax"


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
