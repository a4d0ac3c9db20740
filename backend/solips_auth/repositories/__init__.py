"""Repository package exposing persistence-layer access for the domain models."""

from __future__ import annotations

from solips_auth.repositories.base import BaseRepository
from solips_auth.repositories.user import UserRepository

__all__ = ["BaseRepository", "UserRepository"]
