# solips_auth/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from solips_auth.models.user import User
from solips_auth.repositories.user import UserRepository
from solips_auth.services._shared.base import BaseService
from solips_auth.services._shared.errors import (
    DuplicateEmailError,
    DuplicateUserIdError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidTokenError,
    violates,
)
from solips_auth.services._shared.ports import PasswordHasher, TokenProvider
from solips_auth.services.auth.dto import (
    LoginIn,
    LoginOut,
    RefreshIn,
    SignupIn,
    TokenOut,
    UserInfoOut,
)

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (signup / login / logout / refresh).

    Per-user state: ``Anonymous -> Registered -> LoggedIn(token) -> LoggedOut``.
    Each user owns a single refresh-token slot: login overwrites it, logout
    empties it, and refresh only succeeds for the token currently stored.
    Refresh does not rotate the refresh token.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        password_hasher: PasswordHasher,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for issuing/validating JWTs.
        :param password_hasher: Adapter for one-way password hashing.
        :param clock: Time source for stored refresh-token expiry checks.
        """
        super().__init__(clock=clock)
        self.tokens = token_provider
        self.hasher = password_hasher

    # ------------------------------------------------------------------ #
    # Signup
    # ------------------------------------------------------------------ #

    def signup(self, dto: SignupIn) -> UserInfoOut:
        """
        Register a new identity with an empty refresh-token slot.

        Uniqueness is checked before the password is hashed; email is checked
        first, so a request colliding on both reports the email.

        :param dto: Signup input.
        :returns: The created identity.
        :raises DuplicateEmailError: Email already registered.
        :raises DuplicateUserIdError: User id already registered.
        """
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(dto.email):
                    raise DuplicateEmailError()
                if repo.exists_by_user_id(dto.user_id):
                    raise DuplicateUserIdError()

                user = User(
                    email=dto.email,
                    user_id=dto.user_id,
                    password_hash=self.hasher.hash(dto.password),
                )
                repo.add(user)
                out = self._to_user_info(user)
        except IntegrityError as exc:
            # Concurrent signup won the race between the check and the insert
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise DuplicateEmailError() from exc
            if violates(exc, "uq_users_user_id") or violates(exc, "users.user_id"):
                raise DuplicateUserIdError() from exc
            raise

        log.info("User registered", extra={"event": "auth.signup.ok", "user_id": out.user_id})
        return out

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        The refresh token and its expiry overwrite the user's slot in the same
        transaction that read the (locked) row.

        :param dto: Login input.
        :returns: Access/refresh tokens plus the user's identity.
        :raises InvalidCredentialsError: Unknown user id or wrong password.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_user_id(dto.user_id, for_update=True)
            # Unknown ids still pay for one verify
            stored_hash = user.password_hash if user is not None else self.hasher.dummy_hash
            verified = self.hasher.verify(dto.password, stored_hash)
            if user is None or not verified:
                log.info(
                    "Login rejected",
                    extra={"event": "auth.login.failed", "user_id": dto.user_id},
                )
                raise InvalidCredentialsError()

            access = self.tokens.issue_access_token(user.user_id)
            refresh = self.tokens.issue_refresh_token(user.user_id)
            user.assign_refresh_token(refresh, self.tokens.refresh_expiry_timestamp())
            repo.flush()

            out = LoginOut(
                access_token=access,
                refresh_token=refresh,
                expires_in=self.tokens.access_ttl_seconds,
                user=self._to_user_info(user),
            )

        log.info("User logged in", extra={"event": "auth.login.ok", "user_id": out.user.user_id})
        return out

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, user_id: str) -> None:
        """
        Empty the user's refresh-token slot.

        Idempotent: unknown users and already-empty slots are not errors.
        Access tokens already issued stay valid until they expire.
        """
        with self.rw_uow() as uow:
            matched = uow.users.clear_refresh_token(user_id)

        log.info(
            "User logged out",
            extra={"event": "auth.logout.ok", "user_id": user_id, "status": matched},
        )

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh_token(self, dto: RefreshIn) -> TokenOut:
        """
        Exchange the stored refresh token for a new access token.

        Checks run in order: token validity (signature and claim expiry),
        presence in a user's slot, then the stored expiry.

        :param dto: Refresh input.
        :returns: A new access token; the refresh token is not rotated.
        :raises InvalidTokenError: Token fails validation.
        :raises InvalidRefreshTokenError: No user currently holds this token.
        :raises ExpiredTokenError: Stored expiry is strictly before now.
        """
        token = dto.refresh_token
        if not self.tokens.validate(token):
            log.info("Refresh rejected", extra={"event": "auth.refresh.invalid"})
            raise InvalidTokenError()

        with self.ro_uow() as uow:
            user = uow.users.get_by_refresh_token(token)
            if user is None:
                log.info("Refresh rejected", extra={"event": "auth.refresh.unknown"})
                raise InvalidRefreshTokenError()
            if user.refresh_token_expired(self.now_utc()):
                log.info(
                    "Refresh rejected",
                    extra={"event": "auth.refresh.expired", "user_id": user.user_id},
                )
                raise ExpiredTokenError()
            subject = user.user_id

        out = TokenOut(
            access_token=self.tokens.issue_access_token(subject),
            expires_in=self.tokens.access_ttl_seconds,
        )
        log.info("Access token refreshed", extra={"event": "auth.refresh.ok", "user_id": subject})
        return out

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def is_user_id_available(self, user_id: str) -> bool:
        """Return ``True`` when no account uses ``user_id``."""
        with self.ro_uow() as uow:
            return not uow.users.exists_by_user_id(user_id)

    # ------------------------------------------------------------------ #
    # Mapping
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_user_info(user: User) -> UserInfoOut:
        return UserInfoOut(id=user.id, email=user.email, user_id=user.user_id)
