"""Inbound bearer-token authentication.

A ``before_request`` hook resolves ``Authorization: Bearer <token>`` into a
:class:`Principal` stored on ``flask.g``. It never rejects a request: a
missing or bad token leaves the request anonymous, and protected views opt
in to rejection with :func:`solips_auth.api.deps.require_auth`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import Flask, current_app, g, request

from solips_auth.core.config import DEFAULT_PUBLIC_PATHS, split_csv
from solips_auth.core.extensions import get_token_provider
from solips_auth.services._shared.errors import MalformedTokenError

log = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
PUBLIC_PATHS_KEY = "auth_public_paths"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller. Authentication is flat: no roles are granted."""

    subject: str
    authorities: tuple[str, ...] = ()


def public_paths(app: Flask) -> frozenset[str]:
    """Absolute paths (``API_BASE_PREFIX`` applied) that skip authentication."""
    base = app.config.get("API_BASE_PREFIX", "").rstrip("/")
    raw = app.config.get("AUTH_PUBLIC_PATHS", DEFAULT_PUBLIC_PATHS)
    return frozenset(f"{base}/{path.lstrip('/')}" for path in split_csv(raw))


def bearer_token(header: str | None) -> str | None:
    """Return the token from a ``Bearer`` header value, else ``None``."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def current_principal() -> Principal | None:
    """Return the principal resolved for the current request, if any."""
    return getattr(g, "principal", None)


def authenticate_request() -> None:
    """Resolve the request's bearer token into ``g.principal``."""
    g.principal = None
    if request.path in current_app.extensions[PUBLIC_PATHS_KEY]:
        return

    token = bearer_token(request.headers.get("Authorization"))
    if token is None:
        return

    tokens = get_token_provider()
    try:
        subject = tokens.extract_subject(token)
    except MalformedTokenError as exc:
        log.debug("Bearer token rejected: %s", exc, extra={"event": "auth.bearer.malformed"})
        return
    if not tokens.validate(token):
        log.debug("Bearer token rejected", extra={"event": "auth.bearer.invalid"})
        return

    g.principal = Principal(subject=subject)


def init_app(app: Flask) -> None:
    """Register the authenticator and freeze the public-path set."""
    app.extensions[PUBLIC_PATHS_KEY] = public_paths(app)
    app.before_request(authenticate_request)
