"""Password reset token repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select, update

from gzclp_api.models.password_reset_token import PasswordResetToken
from gzclp_api.repositories.base import BaseRepository


class PasswordResetTokenRepository(BaseRepository[PasswordResetToken]):
    """Persistence-only repository for :class:`PasswordResetToken`."""

    model = PasswordResetToken

    def create(self, *, user_id: int, token_hash: str, expires_at: datetime) -> PasswordResetToken:
        return self.add(
            PasswordResetToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        )

    def get_by_hash(self, token_hash: str) -> PasswordResetToken | None:
        stmt = select(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash)
        return self.session.execute(stmt).scalars().first()

    def mark_used(self, token_hash: str, used_at: datetime) -> int:
        """Set ``used_at`` only while it is still null and the token has not expired.

        :returns: ``1`` for the caller that claimed the token, ``0`` otherwise.
        :rtype: int
        """
        stmt = (
            update(PasswordResetToken)
            .where(
                PasswordResetToken.token_hash == token_hash,
                PasswordResetToken.used_at.is_(None),
                PasswordResetToken.expires_at > used_at,
            )
            .values(used_at=used_at)
        )
        return self._execute_bulk(stmt)

    def delete_for_user(self, user_id: int) -> int:
        return self._execute_bulk(
            delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        )

    def delete_expired_or_used(self, now: datetime) -> int:
        stmt = delete(PasswordResetToken).where(
            or_(PasswordResetToken.expires_at <= now, PasswordResetToken.used_at.is_not(None))
        )
        return self._execute_bulk(stmt)
