from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from uuid import uuid4

from werkzeug.security import check_password_hash, generate_password_hash

from solips_auth.services._shared.ports import PasswordHasher


@lru_cache(maxsize=None)
def _dummy_hash(method: str) -> str:
    """Hash of a random throwaway password, computed once per method."""
    return generate_password_hash(uuid4().hex, method=method)


@dataclass(frozen=True, slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Salted one-way hashing through :mod:`werkzeug.security`.

    :param method: Werkzeug method string, e.g. ``"scrypt"`` or
        ``"pbkdf2:sha256:600000"``. The method is stored inside each hash, so
        changing it only affects new hashes.
    """

    method: str = "scrypt"

    def hash(self, raw: str) -> str:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(raw, method=self.method)

    @property
    def dummy_hash(self) -> str:
        """Well-formed hash matching no known password, for unknown accounts."""
        return _dummy_hash(self.method)

    def verify(self, raw: str, password_hash: str) -> bool:
        if not password_hash or not isinstance(raw, str):
            return False
        try:
            # ``check_password_hash`` is untyped; coerce to bool for mypy.
            return bool(check_password_hash(password_hash, raw))
        except ValueError:
            # Unknown/garbled hash format
            return False
