"""User repository: lookups and refresh-token slot updates."""

from __future__ import annotations

from sqlalchemy import update

from solips_auth.models.user import User
from solips_auth.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It never hashes passwords or issues tokens; it only reads and writes the
    credential rows handed to it by the service layer.
    """

    model = User

    def _filterable_fields(self):
        return {
            "email": User.email,
            "user_id": User.user_id,
            "refresh_token": User.refresh_token,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_user_id(self, user_id: str, *, for_update: bool = False) -> User | None:
        """Fetch a user by its login handle, optionally locking the row."""
        return self.find_one(user_id=user_id.strip(), for_update=for_update)

    def get_by_refresh_token(self, token: str) -> User | None:
        """Fetch the user whose refresh-token slot holds exactly ``token``."""
        return self.find_one(refresh_token=token)

    def exists_by_email(self, email: str) -> bool:
        return self.exists(email=email.lower().strip())

    def exists_by_user_id(self, user_id: str) -> bool:
        return self.exists(user_id=user_id.strip())

    # ---------------------------- Refresh-token slot ----------------------------

    def clear_refresh_token(self, user_id: str) -> int:
        """
        Empty the refresh-token slot with a single ``UPDATE``.

        :returns: Number of rows matched (0 for an unknown user).
        """
        stmt = (
            update(User)
            .where(User.user_id == user_id.strip())
            .values(refresh_token=None, refresh_token_expires_at=None)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)  # type: ignore[attr-defined]
