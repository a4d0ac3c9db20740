"""
solips_auth.services._shared.ports
==================================

*Ports* (hexagonal interfaces) the authentication service depends on.

Modules
-------
- :mod:`token_provider`:
    :class:`~.TokenProvider` (issue / validate / extract subject) and the
    immutable :class:`~.TokenSettings` it is constructed with.

- :mod:`password_hasher`:
    :class:`~.PasswordHasher`, an opaque hash + verify capability.

Concrete adapters live under ``solips_auth.infra``.
"""

from __future__ import annotations

from .password_hasher import PasswordHasher
from .token_provider import TokenProvider, TokenSettings

__all__ = ["PasswordHasher", "TokenProvider", "TokenSettings"]
