# solips_auth/infra/jwt/pyjwt_token_provider.py
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from solips_auth.services._shared.errors import MalformedTokenError
from solips_auth.services._shared.ports import TokenProvider, TokenSettings

log = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    HS256 token provider backed by PyJWT.

    Access and refresh tokens share one shape (``sub``, ``iat``, ``exp``,
    ``jti`` and optional ``iss``/``aud``); only the lifetime differs. The
    ``jti`` makes every issuance unique, so two logins within the same second
    never produce the same refresh token string.

    :param settings: Immutable signing/lifetime configuration.
    :param clock: Source of "now"; injectable for deterministic tests.
    """

    settings: TokenSettings
    clock: Callable[[], datetime] = utcnow

    # -------------------- helpers --------------------

    def _now(self) -> datetime:
        now = self.clock()
        # Naive datetimes are labelled as UTC (no conversion)
        return now if now.tzinfo is not None else now.replace(tzinfo=UTC)

    def _issue(self, subject: str, ttl: timedelta) -> str:
        if not isinstance(subject, str) or not subject:
            raise ValueError("Token subject must be a non-empty string.")
        iat = int(self._now().timestamp())
        payload: dict[str, Any] = {
            "sub": subject,
            "iat": iat,
            "exp": iat + int(ttl.total_seconds()),
            "jti": uuid4().hex,
        }
        if self.settings.issuer:
            payload["iss"] = self.settings.issuer
        if self.settings.audience:
            payload["aud"] = self.settings.audience
        return jwt.encode(payload, self.settings.secret, algorithm=self.settings.algorithm)

    def _decode(self, token: str | None) -> dict[str, Any]:
        """Verify signature and structure; expiry is checked by the caller."""
        if not isinstance(token, str) or not token:
            raise MalformedTokenError()
        try:
            claims = jwt.decode(
                token,
                self.settings.secret,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={
                    "require": REQUIRED_CLAIMS,
                    # time checks use the injected clock, see validate()
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except (jwt.PyJWTError, ValueError) as exc:
            raise MalformedTokenError(f"Malformed token: {exc}") from exc
        if not isinstance(claims.get("sub"), str) or not claims["sub"]:
            raise MalformedTokenError("Malformed token: missing subject")
        return claims

    # -------------------- API ------------------------

    @property
    def access_ttl_seconds(self) -> int:
        return int(self.settings.access_ttl.total_seconds())

    def issue_access_token(self, subject: str) -> str:
        return self._issue(subject, self.settings.access_ttl)

    def issue_refresh_token(self, subject: str) -> str:
        return self._issue(subject, self.settings.refresh_ttl)

    def validate(self, token: str | None) -> bool:
        try:
            claims = self._decode(token)
            expires_at = float(claims["exp"])
        except (MalformedTokenError, TypeError, ValueError, OverflowError) as exc:
            log.debug("token.invalid", extra={"event": "token.invalid", "status": str(exc)})
            return False
        # strict: a token expiring exactly "now" is already invalid
        return expires_at > self._now().timestamp()

    def extract_subject(self, token: str | None) -> str:
        return str(self._decode(token)["sub"])

    def refresh_expiry_timestamp(self) -> datetime:
        return self._now() + self.settings.refresh_ttl
