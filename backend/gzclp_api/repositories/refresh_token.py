"""Refresh token repository: lookups by hash and bulk deletes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select

from gzclp_api.models.refresh_token import RefreshToken
from gzclp_api.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Every delete is a single ``DELETE`` statement whose row count tells the
    caller whether it actually removed the row.
    """

    model = RefreshToken

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        previous_hash: str | None = None,
    ) -> RefreshToken:
        return self.add(
            RefreshToken(
                user_id=user_id,
                token_hash=token_hash,
                previous_hash=previous_hash,
                expires_at=expires_at,
            )
        )

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return self.session.execute(stmt).scalars().first()

    def get_by_previous_hash(self, token_hash: str) -> RefreshToken | None:
        """Return the token minted by rotating ``token_hash``, if still present."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.previous_hash == token_hash)
            .order_by(RefreshToken.id.desc())
        )
        return self.session.execute(stmt).scalars().first()

    def delete_by_hash(self, token_hash: str) -> int:
        return self._execute_bulk(delete(RefreshToken).where(RefreshToken.token_hash == token_hash))

    def delete_for_user(self, user_id: int) -> int:
        return self._execute_bulk(delete(RefreshToken).where(RefreshToken.user_id == user_id))

    def delete_expired(self, now: datetime) -> int:
        return self._execute_bulk(delete(RefreshToken).where(RefreshToken.expires_at <= now))
