"""Centralized JSON error handling for the API.

Every error leaves the service as the same envelope::

    {"success": false, "code": "AUTH-001", "message": "...", "timestamp": "..."}

Validation failures additionally carry ``errors`` (first message per field).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from solips_auth.core.logger import ensure_request_id
from solips_auth.services._shared.errors import (
    DuplicateEmailError,
    DuplicateUserIdError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    ServiceError,
    UserNotFoundError,
)

log = logging.getLogger(__name__)

MISSING_FIELD_MESSAGE = "Missing data for required field."


class ErrorCode(Enum):
    """Stable wire error codes: ``(http status, code, default message)``."""

    INVALID_CREDENTIALS = (HTTPStatus.UNAUTHORIZED, "AUTH-001", "Invalid user id or password")
    INVALID_TOKEN = (HTTPStatus.UNAUTHORIZED, "AUTH-002", "Invalid token")
    EXPIRED_TOKEN = (HTTPStatus.UNAUTHORIZED, "AUTH-003", "Token has expired")
    INVALID_REFRESH_TOKEN = (HTTPStatus.UNAUTHORIZED, "AUTH-004", "Invalid refresh token")

    DUPLICATE_EMAIL = (HTTPStatus.CONFLICT, "USER-001", "Email is already in use")
    DUPLICATE_USER_ID = (HTTPStatus.CONFLICT, "USER-002", "User id is already in use")
    USER_NOT_FOUND = (HTTPStatus.NOT_FOUND, "USER-003", "User not found")

    INVALID_INPUT_VALUE = (HTTPStatus.BAD_REQUEST, "COMMON-001", "Invalid input value")
    MISSING_INPUT_VALUE = (HTTPStatus.BAD_REQUEST, "COMMON-002", "Required input value is missing")
    INTERNAL_SERVER_ERROR = (
        HTTPStatus.INTERNAL_SERVER_ERROR,
        "COMMON-003",
        "Internal server error",
    )

    def __init__(self, status: HTTPStatus, code: str, message: str) -> None:
        self.status = int(status)
        self.code = code
        self.message = message


# Checked in order, so subclasses must precede their bases.
SERVICE_ERROR_CODES: tuple[tuple[type[ServiceError], ErrorCode], ...] = (
    (InvalidCredentialsError, ErrorCode.INVALID_CREDENTIALS),
    (InvalidTokenError, ErrorCode.INVALID_TOKEN),
    (ExpiredTokenError, ErrorCode.EXPIRED_TOKEN),
    (InvalidRefreshTokenError, ErrorCode.INVALID_REFRESH_TOKEN),
    (DuplicateEmailError, ErrorCode.DUPLICATE_EMAIL),
    (DuplicateUserIdError, ErrorCode.DUPLICATE_USER_ID),
    (UserNotFoundError, ErrorCode.USER_NOT_FOUND),
)


def error_code_for(exc: ServiceError) -> ErrorCode:
    """Map a domain exception to its wire error code (500 when unmapped)."""
    for exc_type, error_code in SERVICE_ERROR_CODES:
        if isinstance(exc, exc_type):
            return error_code
    return ErrorCode.INTERNAL_SERVER_ERROR


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _envelope(
    *,
    code: str,
    message: str,
    errors: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Build the error envelope.

    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param errors: Optional per-field validation messages.
    :returns: JSON-serializable dictionary.
    :rtype: dict
    """
    body: dict[str, Any] = {
        "success": False,
        "code": code,
        "message": message,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if errors:
        body["errors"] = errors
    return body


def _json_error(body: dict[str, Any], status: int) -> tuple[Response, int]:
    return jsonify(body), status


def _log(
    status: int, code: str, message: str, *, exc_info: BaseException | None = None
) -> None:
    # 4xx → warning; 5xx → error
    level = log.error if status >= 500 else log.warning
    level(
        "%s: status=%s msg=%s request_id=%s",
        code,
        status,
        message,
        ensure_request_id(),
        extra={"status": status},
        exc_info=exc_info,
    )


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to ``COMMON-001``.
    errors : dict[str, str] | None, optional
        Optional per-field messages included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = ErrorCode.INVALID_INPUT_VALUE.code,
        errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.errors = errors or {}

    @classmethod
    def from_code(
        cls,
        error_code: ErrorCode,
        message: str | None = None,
        errors: dict[str, str] | None = None,
    ) -> APIError:
        return cls(
            message or error_code.message,
            status_code=error_code.status,
            code=error_code.code,
            errors=errors,
        )

    def to_payload(self) -> dict[str, Any]:
        """
        Serialize error metadata into the error envelope.

        :returns: Envelope dictionary.
        :rtype: dict
        """
        return _envelope(code=self.code, message=self.message, errors=self.errors or None)


class Unauthorized(APIError):
    """401 when a protected endpoint is called without a valid bearer token."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            message,
            status_code=HTTPStatus.UNAUTHORIZED,
            code=ErrorCode.INVALID_TOKEN.code,
        )


def flatten_validation_messages(messages: Any) -> dict[str, str]:
    """Keep the first message per field from Marshmallow's error mapping."""
    if not isinstance(messages, dict):
        return {"_schema": str(messages)}
    flat: dict[str, str] = {}
    for field, value in messages.items():
        while isinstance(value, (list, tuple)) and value:
            value = value[0]
        if isinstance(value, dict):
            nested = flatten_validation_messages(value)
            value = next(iter(nested.values()), "")
        flat[str(field)] = str(value)
    return flat


def validation_error_code(flat: dict[str, str]) -> ErrorCode:
    """``MISSING_INPUT_VALUE`` when every failure is a missing field."""
    if flat and all(msg == MISSING_FIELD_MESSAGE for msg in flat.values()):
        return ErrorCode.MISSING_INPUT_VALUE
    return ErrorCode.INVALID_INPUT_VALUE


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees the error envelope for all handled errors.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    - 5xx bodies carry a generic message only.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        _log(err.status_code, err.code, err.message)
        return _json_error(err.to_payload(), err.status_code)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        error_code = error_code_for(err)
        if error_code is ErrorCode.INTERNAL_SERVER_ERROR:
            _log(error_code.status, error_code.code, err.message, exc_info=err)
            body = _envelope(code=error_code.code, message=error_code.message)
        else:
            _log(error_code.status, error_code.code, err.message)
            body = _envelope(code=error_code.code, message=err.message)
        return _json_error(body, error_code.status)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        flat = flatten_validation_messages(err.messages)
        error_code = validation_error_code(flat)
        _log(error_code.status, error_code.code, f"fields={sorted(flat)}")
        body = _envelope(code=error_code.code, message=error_code.message, errors=flat)
        return _json_error(body, error_code.status)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        # Werkzeug may provide HTML-ish description; normalize for clients
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        _log(status, error_code, message)
        response, _ = _json_error(_envelope(code=error_code, message=message), status)
        # Keep Allow headers and the like from the original exception
        for key, value in err.get_headers():
            if key.lower() != "content-type":
                response.headers[key] = value
        return response, status

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        _log(HTTPStatus.CONFLICT, "conflict", "IntegrityError", exc_info=err)
        body = _envelope(code="conflict", message="Resource conflict")
        return _json_error(body, HTTPStatus.CONFLICT)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        # E.g., transient DB connectivity, deadlocks, etc.
        _log(
            HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable", "OperationalError", exc_info=err
        )
        body = _envelope(code="service_unavailable", message="Service temporarily unavailable")
        return _json_error(body, HTTPStatus.SERVICE_UNAVAILABLE)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        error_code = ErrorCode.INTERNAL_SERVER_ERROR
        _log(error_code.status, error_code.code, type(err).__name__, exc_info=err)
        body = _envelope(code=error_code.code, message=error_code.message)
        return _json_error(body, error_code.status)
