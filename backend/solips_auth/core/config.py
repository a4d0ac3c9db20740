"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

DEFAULT_PUBLIC_PATHS: Final[str] = (
    "/auth/signup,/auth/login,/auth/refresh,/auth/check-userid"
)

# Loads .env during development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path under which the auth blueprint is mounted (empty by default,
        so endpoints live at ``/auth/...``).
    SECRET_KEY: str
        Flask secret. Not used for tokens.
    JWT_SECRET_KEY: str
        Shared HMAC key used to sign and verify every token. Must be at least
        32 bytes long.
    JWT_ISSUER / JWT_AUDIENCE: str | None
        Optional ``iss`` / ``aud`` claims, embedded and verified when set.
    JWT_ACCESS_TOKEN_EXPIRES / JWT_REFRESH_TOKEN_EXPIRES: int
        Token lifetimes in seconds.
    JWT_ALGORITHM: str
        Symmetric signing algorithm (``HS256``).
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method (e.g. ``scrypt`` or ``pbkdf2:sha256``).
    AUTH_PUBLIC_PATHS: str
        Comma-separated paths (relative to ``API_BASE_PREFIX``) for which the
        bearer authenticator is skipped.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes. They are read once at import time
    and copied into ``app.config`` by the factory.
    """

    API_BASE_PREFIX = os.getenv("API_BASE_PREFIX", "")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv(
        "JWT_SECRET_KEY", "CHANGE_ME_JWT_DEVELOPMENT_ONLY_32_BYTES_MIN"
    )
    JWT_ISSUER = os.getenv("JWT_ISSUER") or None
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRES = env_int("JWT_ACCESS_TOKEN_EXPIRES", 3600)
    JWT_REFRESH_TOKEN_EXPIRES = env_int("JWT_REFRESH_TOKEN_EXPIRES", 14 * 24 * 3600)
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
    AUTH_PUBLIC_PATHS = os.getenv("AUTH_PUBLIC_PATHS", DEFAULT_PUBLIC_PATHS)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS, proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXYFIX_HOPS = env_int("PROXYFIX_HOPS", 1)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses a cheap PBKDF2 round count so hashing does not dominate test time.
    - Handled errors still go through the JSON error handlers.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-secret-key-with-at-least-32-bytes!"
    JWT_ISSUER = "solips-auth-tests"
    JWT_AUDIENCE = "solips-clients"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    USE_PROXYFIX = False
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def split_csv(raw: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty entries."""
    return [item.strip() for item in (raw or "").split(",") if item.strip()]
