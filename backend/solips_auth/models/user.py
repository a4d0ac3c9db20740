"""User model: the credential store row for one account."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from solips_auth.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin


def as_utc(value: datetime) -> datetime:
    """Label naive datetimes (SQLite drops tzinfo) as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class User(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Authentication identity with a single refresh-token slot.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique.
    user_id : str
        Public login handle and token subject. Unique.
    password_hash : str
        Opaque hash produced by the configured password hasher.
    refresh_token : str | None
        The one live refresh token, or ``None`` when logged out.
    refresh_token_expires_at : datetime | None
        Expiry of ``refresh_token``; set and cleared together with it.
    created_at : datetime
        Creation timestamp (from mixin).
    """

    __tablename__ = "users"

    # Columns
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(String(500), nullable=True)
    refresh_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("user_id", name="uq_users_user_id"),
        CheckConstraint(
            "(refresh_token IS NULL) = (refresh_token_expires_at IS NULL)",
            name="refresh_token_pair",
        ),
        Index("ix_users_refresh_token", "refresh_token"),
    )

    # -------------------- Refresh-token slot --------------------

    def assign_refresh_token(self, token: str, expires_at: datetime) -> None:
        """
        Overwrite the refresh-token slot (last write wins).

        :param token: Encoded refresh token.
        :param expires_at: Absolute, timezone-aware expiry.
        :raises ValueError: If either value is missing.
        """
        if not token or expires_at is None:
            raise ValueError("Refresh token and its expiry must be set together.")
        self.refresh_token = token
        self.refresh_token_expires_at = expires_at

    def clear_refresh_token(self) -> None:
        """Empty the refresh-token slot."""
        self.refresh_token = None
        self.refresh_token_expires_at = None

    def refresh_token_expired(self, now: datetime) -> bool:
        """
        Return ``True`` if the stored expiry is strictly before ``now``.

        An empty slot counts as expired.
        """
        if self.refresh_token_expires_at is None:
            return True
        return as_utc(self.refresh_token_expires_at) < as_utc(now)

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("user_id")
    def _normalize_user_id(self, key: str, value: str) -> str:
        """
        Trim and validate the user id.

        :raises ValueError: If the user id is missing or only whitespace.
        """
        if not isinstance(value, str):
            raise ValueError("User id is required.")
        v = value.strip()
        if not v:
            raise ValueError("User id is required.")
        return v
