import pytest
from gzclp_api.models.user import User
from gzclp_api.uow import (
    SQLAlchemyReadOnlyUnitOfWork as ROuow,
)
from gzclp_api.uow import (
    SQLAlchemyUnitOfWork as RWuow,
)
from sqlalchemy import text
from tests.factories.user import UserFactory


class TestReadOnlyUnitOfWorkPortable:
    """Guards that hold on every backend, SQLite included."""

    def test_allows_reads(self, app, db):
        with RWuow() as uow:
            uow.session.add(UserFactory.build())

        with ROuow() as uow:
            assert uow.session.query(User).count() >= 1

    def test_disallows_commit(self, app, db):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_blocks_orm_flush_writes(self, app, db):
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_listeners_are_removed_on_exit(self, app, db):
        with ROuow():
            pass

        # Writes work again once the read-only scope is closed
        with RWuow() as uow:
            uow.users.add(UserFactory.build())


class TestReadOnlyUnitOfWorkServerSide:
    @pytest.fixture(autouse=True)
    def _skip_if_sqlite(self, db):
        """
        Skip on SQLite: database-level READ ONLY transactional flags are not
        supported there.
        """
        if db.engine.url.get_backend_name() == "sqlite":
            pytest.skip("Read-only write guards not supported on SQLite")

    def test_blocks_core_dml(self, app, db):
        email = UserFactory.build().email
        with ROuow() as uow, pytest.raises(RuntimeError, match="SQL statement blocked"):
            uow.session.execute(text("INSERT INTO users (email) VALUES (:email)"), {"email": email})

    def test_always_rolls_back_changes(self, app, db):
        with RWuow() as uow:
            user = UserFactory.build()
            uow.session.add(user)
            uow.session.flush()
            user_id = user.id

        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            u = uow.session.get(User, user_id)
            original_email = u.email
            u.email = "mutated-in-ro@example.com"
            uow.session.flush()

        with RWuow() as uow:
            assert uow.session.get(User, user_id).email == original_email
