"""Single-use password reset tokens."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gzclp_api.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin, UTCDateTime

if TYPE_CHECKING:
    from .user import User


class PasswordResetToken(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Fields
    ------
    token_hash : str
        SHA-256 hex of the raw token.
    expires_at : datetime
        Absolute expiry (UTC).
    used_at : datetime | None
        Set exactly once when the token is redeemed.
    """

    __tablename__ = "password_reset_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    user: Mapped[User] = relationship(back_populates="password_reset_tokens")

    __table_args__ = (
        Index("ix_password_reset_tokens_user_id", "user_id"),
        Index("ix_password_reset_tokens_expires_at", "expires_at"),
    )
