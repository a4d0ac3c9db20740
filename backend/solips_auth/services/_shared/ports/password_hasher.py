from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Opaque one-way password hashing capability."""

    def hash(self, raw: str) -> str: ...

    @property
    def dummy_hash(self) -> str:
        """Hash checked in place of a missing account's, so both paths cost one verify."""
        ...

    def verify(self, raw: str, password_hash: str) -> bool:
        """Return ``True`` when ``raw`` matches ``password_hash``. Never raises."""
        ...
