# solips_auth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

BEARER = "Bearer"

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class SignupIn:
    """
    Input DTO for signup.

    :param email: Contact email (normalized by the model).
    :type email: str
    :param user_id: Login handle, becomes the token subject.
    :type user_id: str
    :param password: Raw password (hashed before persistence).
    :type password: str
    """

    email: str
    user_id: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param user_id: Login handle.
    :type user_id: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    user_id: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserInfoOut:
    """Public identity of a user."""

    id: int
    email: str
    user_id: str


@dataclass(frozen=True, slots=True)
class LoginOut:
    """
    Output DTO returned by a successful login.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT, also stored on the user row.
    :param expires_in: Access token lifetime in seconds.
    :param user: Identity of the authenticated user.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    user: UserInfoOut
    token_type: str = BEARER


@dataclass(frozen=True, slots=True)
class TokenOut:
    """Fresh access token issued by a refresh."""

    access_token: str
    expires_in: int
    token_type: str = BEARER
