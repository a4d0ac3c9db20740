"""CORS configuration helper for the auth endpoints."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from solips_auth.core.config import split_csv


def init_app(app: Flask) -> None:
    """Configure CORS for ``<API_BASE_PREFIX>/auth/*`` based on application config.

    When ``CORS_ORIGINS`` is blank or ``"*"`` the policy allows any origin but
    disables credential support.
    """
    origins = split_csv(app.config.get("CORS_ORIGINS", ""))
    wildcard = len(origins) == 0 or origins == ["*"]
    base = app.config.get("API_BASE_PREFIX", "").rstrip("/")

    CORS(
        app,
        resources={rf"{base}/auth/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=["X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
