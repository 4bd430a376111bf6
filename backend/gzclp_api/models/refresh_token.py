"""Hashed refresh tokens with rotation breadcrumbs."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gzclp_api.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin, UTCDateTime

if TYPE_CHECKING:
    from .user import User


class RefreshToken(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    One live refresh token.

    Fields
    ------
    user_id : int
        Owner; rows disappear with the user.
    token_hash : str
        SHA-256 hex of the raw token. The raw token is never stored.
    previous_hash : str | None
        Hash of the token consumed to mint this one. Lets a replay of the
        consumed token find its successor and revoke the whole family.
    expires_at : datetime
        Absolute expiry (UTC).
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    previous_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_previous_hash", "previous_hash"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
