from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from gzclp_api.models.password_reset_token import PasswordResetToken
from gzclp_api.services._shared.ports import PasswordResetStore, PasswordResetTokenRecord
from gzclp_api.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from gzclp_api.infra.sqlalchemy._errors import store_errors

STORE_NAME = "password_reset_tokens"


def _to_record(row: PasswordResetToken) -> PasswordResetTokenRecord:
    return PasswordResetTokenRecord(
        id=row.id,
        user_id=row.user_id,
        token_hash=row.token_hash,
        expires_at=row.expires_at,
        used_at=row.used_at,
        created_at=row.created_at,
    )


class SQLAlchemyPasswordResetStore(PasswordResetStore):
    """Reset token store over the ``password_reset_tokens`` table."""

    def __init__(
        self,
        *,
        uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._uow = uow_factory
        self._ro_uow = ro_uow_factory

    def create(self, *, user_id: int, token_hash: str, expires_at: datetime) -> PasswordResetTokenRecord:
        with store_errors(STORE_NAME), self._uow() as uow:
            row = uow.password_reset_tokens.create(
                user_id=user_id, token_hash=token_hash, expires_at=expires_at
            )
            return _to_record(row)

    def find_by_hash(self, token_hash: str) -> PasswordResetTokenRecord | None:
        with store_errors(STORE_NAME), self._ro_uow() as uow:
            row = uow.password_reset_tokens.get_by_hash(token_hash)
            return _to_record(row) if row is not None else None

    def mark_used(self, token_hash: str, used_at: datetime) -> bool:
        # Conditional UPDATE: exactly one concurrent caller sees rowcount == 1
        with store_errors(STORE_NAME), self._uow() as uow:
            return uow.password_reset_tokens.mark_used(token_hash, used_at) == 1

    def delete_for_user(self, user_id: int) -> int:
        with store_errors(STORE_NAME), self._uow() as uow:
            return uow.password_reset_tokens.delete_for_user(user_id)

    def delete_expired(self, now: datetime) -> int:
        with store_errors(STORE_NAME), self._uow() as uow:
            return uow.password_reset_tokens.delete_expired_or_used(now)
