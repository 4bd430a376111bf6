"""Repository package exposing persistence-layer access for all models."""

from __future__ import annotations

from gzclp_api.repositories.base import BaseRepository
from gzclp_api.repositories.password_reset_token import PasswordResetTokenRepository
from gzclp_api.repositories.refresh_token import RefreshTokenRepository
from gzclp_api.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "PasswordResetTokenRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
