from __future__ import annotations

from collections.abc import Callable

from gzclp_api.services._shared.ports import CredentialStore
from gzclp_api.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from gzclp_api.infra.sqlalchemy._errors import store_errors

STORE_NAME = "users"


class SQLAlchemyCredentialStore(CredentialStore):
    """Credential checks and password updates against the ``users`` table."""

    def __init__(
        self,
        *,
        uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._uow = uow_factory
        self._ro_uow = ro_uow_factory

    def authenticate(self, email: str, password: str) -> int | None:
        with store_errors(STORE_NAME), self._ro_uow() as uow:
            user = uow.users.authenticate(email, password)
            return user.id if user is not None else None

    def find_user_id_by_email(self, email: str) -> int | None:
        with store_errors(STORE_NAME), self._ro_uow() as uow:
            return uow.users.get_id_by_email(email)

    def set_password(self, user_id: int, new_password: str) -> None:
        with store_errors(STORE_NAME), self._uow() as uow:
            uow.users.update_password(user_id, new_password)
