from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from gzclp_api.models.refresh_token import RefreshToken
from gzclp_api.services._shared.ports import RefreshTokenRecord, RefreshTokenStore
from gzclp_api.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from gzclp_api.infra.sqlalchemy._errors import store_errors

STORE_NAME = "refresh_tokens"


def _to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        previous_hash=row.previous_hash,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Refresh token store over the ``refresh_tokens`` table.

    Each call runs in its own Unit of Work and commits before returning, so a
    deletion observed by one rotation is visible to every other worker.
    :meth:`rotate` is the only call that writes twice, and it rolls back both
    writes together.
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._uow = uow_factory
        self._ro_uow = ro_uow_factory

    def create(
        self,
        *,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        previous_hash: str | None = None,
    ) -> RefreshTokenRecord:
        with store_errors(STORE_NAME), self._uow() as uow:
            row = uow.refresh_tokens.create(
                user_id=user_id,
                token_hash=token_hash,
                expires_at=expires_at,
                previous_hash=previous_hash,
            )
            return _to_record(row)

    def find_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        with store_errors(STORE_NAME), self._ro_uow() as uow:
            row = uow.refresh_tokens.get_by_hash(token_hash)
            return _to_record(row) if row is not None else None

    def find_by_previous_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        with store_errors(STORE_NAME), self._ro_uow() as uow:
            row = uow.refresh_tokens.get_by_previous_hash(token_hash)
            return _to_record(row) if row is not None else None

    def delete_by_hash(self, token_hash: str) -> int:
        with store_errors(STORE_NAME), self._uow() as uow:
            return uow.refresh_tokens.delete_by_hash(token_hash)

    def rotate(
        self,
        *,
        token_hash: str,
        user_id: int,
        new_hash: str,
        expires_at: datetime,
    ) -> RefreshTokenRecord | None:
        # DELETE and INSERT share one transaction; the DELETE row lock picks the winner
        with store_errors(STORE_NAME), self._uow() as uow:
            if uow.refresh_tokens.delete_by_hash(token_hash) == 0:
                return None
            row = uow.refresh_tokens.create(
                user_id=user_id,
                token_hash=new_hash,
                expires_at=expires_at,
                previous_hash=token_hash,
            )
            return _to_record(row)

    def delete_all_for_user(self, user_id: int) -> int:
        with store_errors(STORE_NAME), self._uow() as uow:
            return uow.refresh_tokens.delete_for_user(user_id)

    def delete_expired(self, now: datetime) -> int:
        with store_errors(STORE_NAME), self._uow() as uow:
            return uow.refresh_tokens.delete_expired(now)
