"""Authentication-related Marshmallow schemas.

Wire field names are camelCase (``userId``, ``accessToken``); the Python
side uses snake_case through ``data_key``.
"""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from solips_auth.services.auth.dto import LoginIn, RefreshIn, SignupIn

SCHOOL_EMAIL_PATTERN = r"^s\d{5}@gsm\.hs\.kr$"
PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+$"
USER_ID_MAX_LENGTH = 50


def not_blank(value: str) -> None:
    if not value or not value.strip():
        raise ValidationError("Field may not be blank.")


class _InputSchema(Schema):
    class Meta:
        unknown = EXCLUDE


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SignupSchema(_InputSchema):
    """Input payload for account registration."""

    email = fields.Email(
        required=True,
        validate=validate.Regexp(
            SCHOOL_EMAIL_PATTERN, error="Email must look like s12345@gsm.hs.kr."
        ),
    )
    user_id = fields.String(
        required=True,
        data_key="userId",
        validate=[not_blank, validate.Length(max=USER_ID_MAX_LENGTH)],
    )
    password = fields.String(
        required=True,
        validate=validate.Regexp(
            PASSWORD_PATTERN,
            error=(
                "Password must contain upper and lower case letters, a digit and "
                "one of @$!%*?&, and nothing else."
            ),
        ),
    )

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> SignupIn:
        return SignupIn(**data)


class LoginSchema(_InputSchema):
    """Input payload for authenticating a user."""

    user_id = fields.String(required=True, data_key="userId", validate=not_blank)
    password = fields.String(required=True, validate=not_blank)

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> LoginIn:
        return LoginIn(**data)


class RefreshSchema(_InputSchema):
    """Input payload carrying the refresh token to exchange."""

    refresh_token = fields.String(required=True, data_key="refreshToken", validate=not_blank)

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> RefreshIn:
        return RefreshIn(**data)


class UserIdQuerySchema(_InputSchema):
    """``?userId=`` query string of the availability check."""

    user_id = fields.String(required=True, data_key="userId", validate=not_blank)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class UserInfoSchema(Schema):
    """Public identity of a user."""

    id = fields.Integer(required=True)
    email = fields.String(required=True)
    user_id = fields.String(required=True, data_key="userId")


class LoginResponseSchema(Schema):
    """Token pair plus identity returned by a successful login."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    token_type = fields.String(required=True, data_key="tokenType")
    expires_in = fields.Integer(required=True, data_key="expiresIn")
    user = fields.Nested(UserInfoSchema, required=True)


class TokenResponseSchema(Schema):
    """Response payload containing a refreshed access token."""

    access_token = fields.String(required=True, data_key="accessToken")
    token_type = fields.String(required=True, data_key="tokenType")
    expires_in = fields.Integer(required=True, data_key="expiresIn")


class AvailabilitySchema(Schema):
    available = fields.Boolean(required=True)
    message = fields.String(required=True)
