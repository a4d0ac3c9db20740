from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

MIN_SECRET_BYTES = 32


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Process-wide, immutable token configuration.

    :param secret: Shared HMAC key (at least 32 bytes once UTF-8 encoded).
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param issuer: Optional ``iss`` claim, verified when set.
    :param audience: Optional ``aud`` claim, verified when set.
    :param algorithm: Symmetric signing algorithm.
    """

    secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    issuer: str | None = None
    audience: str | None = None
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if len(self.secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ValueError(f"JWT secret must be at least {MIN_SECRET_BYTES} bytes long.")
        if self.access_ttl <= timedelta(0) or self.refresh_ttl <= timedelta(0):
            raise ValueError("Token lifetimes must be positive.")
        if not self.algorithm.upper().startswith("HS"):
            raise ValueError("Only symmetric HMAC algorithms (HS*) are supported.")

    @classmethod
    def from_config(cls, config: Any) -> TokenSettings:
        """Build settings from a Flask config (or any mapping with the same keys)."""
        return cls(
            secret=str(config["JWT_SECRET_KEY"]),
            access_ttl=timedelta(seconds=int(config["JWT_ACCESS_TOKEN_EXPIRES"])),
            refresh_ttl=timedelta(seconds=int(config["JWT_REFRESH_TOKEN_EXPIRES"])),
            issuer=config.get("JWT_ISSUER") or None,
            audience=config.get("JWT_AUDIENCE") or None,
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
        )


class TokenProvider(Protocol):
    """Port for issuing and checking signed access/refresh tokens."""

    @property
    def access_ttl_seconds(self) -> int: ...

    def issue_access_token(self, subject: str) -> str: ...

    def issue_refresh_token(self, subject: str) -> str: ...

    def validate(self, token: str | None) -> bool:
        """Return ``True`` iff signature verifies and expiry is strictly in the future."""
        ...

    def extract_subject(self, token: str | None) -> str:
        """Return ``sub`` or raise :class:`MalformedTokenError`."""
        ...

    def refresh_expiry_timestamp(self) -> datetime: ...
