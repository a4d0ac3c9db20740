"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from solips_auth.core.errors import Unauthorized
from solips_auth.core.extensions import get_password_hasher, get_token_provider
from solips_auth.core.security import Principal, current_principal
from solips_auth.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` wired to the app's security adapters."""

    return AuthService(
        token_provider=get_token_provider(),
        password_hasher=get_password_hasher(),
    )


def json_body() -> Any:
    """Return the parsed JSON body, or an empty mapping when absent/invalid."""

    payload = request.get_json(silent=True)
    return {} if payload is None else payload


def require_auth(func: F) -> F:
    """Ensure the request was authenticated by the bearer-token hook."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        if current_principal() is None:
            raise Unauthorized()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def authenticated_principal() -> Principal:
    """Return the principal of a request already guarded by :func:`require_auth`."""

    principal = current_principal()
    if principal is None:
        raise Unauthorized()
    return principal


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def empty_response(*, status: int = 200) -> Response:
    """Return a response with no body."""

    return current_app.response_class(status=status)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
