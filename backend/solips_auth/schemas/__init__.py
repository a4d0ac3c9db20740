"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AvailabilitySchema,
    LoginResponseSchema,
    LoginSchema,
    RefreshSchema,
    SignupSchema,
    TokenResponseSchema,
    UserIdQuerySchema,
    UserInfoSchema,
)

__all__ = [
    "AvailabilitySchema",
    "LoginResponseSchema",
    "LoginSchema",
    "RefreshSchema",
    "SignupSchema",
    "TokenResponseSchema",
    "UserIdQuerySchema",
    "UserInfoSchema",
]
