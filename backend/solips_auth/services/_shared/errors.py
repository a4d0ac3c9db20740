"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable contract between the token provider, the
repositories and :class:`~solips_auth.services.auth.service.AuthService`.

The translation to the JSON error envelope (status, code, message) happens
at the HTTP boundary in :mod:`solips_auth.core.errors`.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite reports the offending
    ``table.column``, so both spellings are accepted by callers passing
    either form.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name or ``table.column`` marker.
    :returns: ``True`` if the error message mentions ``constraint_name``.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Subclasses set ``default_message``; callers may override it per raise.
    """

    default_message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


# --------------------------------------------------------------------------- #
# Authentication
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """Unknown userId or wrong password. Both causes share one message."""

    default_message = "Invalid user id or password"


class InvalidTokenError(ServiceError):
    """Presented token fails signature, structure or expiry validation."""

    default_message = "Invalid token"


class MalformedTokenError(InvalidTokenError):
    """Token cannot be parsed/verified well enough to read its subject."""

    default_message = "Malformed token"


class ExpiredTokenError(ServiceError):
    """Token is well formed but past its expiry (claim or stored record)."""

    default_message = "Token has expired"


class InvalidRefreshTokenError(ServiceError):
    """Refresh token is well formed but is not the live one for any user."""

    default_message = "Invalid refresh token"


# --------------------------------------------------------------------------- #
# Users
# --------------------------------------------------------------------------- #


class DuplicateEmailError(ServiceError):
    default_message = "Email is already in use"


class DuplicateUserIdError(ServiceError):
    default_message = "User id is already in use"


class UserNotFoundError(ServiceError):
    """Raised by lookups outside the login flow when no user matches."""

    default_message = "User not found"

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__(f"User not found: {user_id}" if user_id else None)
        self.user_id = user_id
