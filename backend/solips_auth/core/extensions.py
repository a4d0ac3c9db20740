"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from flask import Flask, current_app
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

from solips_auth.infra import JWTTokenProvider, WerkzeugPasswordHasher
from solips_auth.services._shared.ports import PasswordHasher, TokenProvider, TokenSettings

# Global naming convention for all constraints; constraint names are relied
# upon when mapping unique violations back to domain errors.
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)

TOKEN_PROVIDER_KEY = "token_provider"
PASSWORD_HASHER_KEY = "password_hasher"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations and the security collaborators.

    The token provider and password hasher are built once from the app config
    and kept in ``app.extensions``; they are immutable for the lifetime of the
    process. Invalid token settings (short secret, non-positive lifetimes)
    fail here, at startup.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from solips_auth import models as _models  # noqa: F401

    migrate.init_app(app, db)

    app.extensions[TOKEN_PROVIDER_KEY] = JWTTokenProvider(
        settings=TokenSettings.from_config(app.config)
    )
    app.extensions[PASSWORD_HASHER_KEY] = WerkzeugPasswordHasher(
        method=app.config.get("PASSWORD_HASH_METHOD", "scrypt")
    )


def get_token_provider(app: Flask | None = None) -> TokenProvider:
    """Return the token provider bound to ``app`` (or the current app)."""
    target = app or current_app
    try:
        return target.extensions[TOKEN_PROVIDER_KEY]  # type: ignore[no-any-return]
    except KeyError:
        raise RuntimeError("Token provider is not initialized. Call init_app() first.") from None


def get_password_hasher(app: Flask | None = None) -> PasswordHasher:
    """Return the password hasher bound to ``app`` (or the current app)."""
    target = app or current_app
    try:
        return target.extensions[PASSWORD_HASHER_KEY]  # type: ignore[no-any-return]
    except KeyError:
        raise RuntimeError("Password hasher is not initialized. Call init_app() first.") from None
