"""
SQLAlchemy adapters behind the token ports.

Each adapter call runs in its own Unit of Work; inside the test fixture the
commits land in the per-test SAVEPOINT.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from gzclp_api.infra.sqlalchemy._errors import store_errors
from gzclp_api.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from gzclp_api.infra.sqlalchemy.password_reset_store import SQLAlchemyPasswordResetStore
from gzclp_api.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from gzclp_api.repositories.refresh_token import RefreshTokenRepository
from gzclp_api.services._shared.errors import InvalidTokenError, StoreUnavailableError
from gzclp_api.services._shared.ports import PasswordResetTokenRecord, RefreshTokenRecord
from gzclp_api.services._shared.ports.token_provider import StubTokenProvider
from gzclp_api.services._shared.security import hash_token
from gzclp_api.services.auth.dto import RefreshIn
from gzclp_api.services.auth.service import SessionTokenService
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from tests.factories.user import DEFAULT_PASSWORD, UserFactory

FUTURE = datetime(2030, 6, 1, tzinfo=UTC)


class _DownUnitOfWork:
    """Unit of Work whose database is unreachable."""

    def __enter__(self):
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("db down"))

    def __exit__(self, *exc):
        return False


# ---------------------------- Refresh tokens ------------------------------ #
class TestSQLAlchemyRefreshTokenStore:
    @pytest.fixture()
    def store(self):
        return SQLAlchemyRefreshTokenStore()

    def test_create_returns_plain_record(self, store, session):
        user = UserFactory()

        record = store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)

        assert isinstance(record, RefreshTokenRecord)
        assert record.user_id == user.id
        assert record.expires_at == FUTURE
        assert record.created_at.tzinfo is not None

    def test_find_by_hash_and_previous_hash(self, store, session):
        user = UserFactory()
        store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)
        store.create(user_id=user.id, token_hash="b" * 64, expires_at=FUTURE, previous_hash="a" * 64)

        assert store.find_by_hash("a" * 64).previous_hash is None
        assert store.find_by_previous_hash("a" * 64).token_hash == "b" * 64
        assert store.find_by_hash("c" * 64) is None

    def test_delete_by_hash_single_winner(self, store, session):
        user = UserFactory()
        store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)

        assert store.delete_by_hash("a" * 64) == 1
        assert store.delete_by_hash("a" * 64) == 0

    def test_rotate_replaces_token_with_linked_successor(self, store, session):
        user = UserFactory()
        store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)

        successor = store.rotate(
            token_hash="a" * 64, user_id=user.id, new_hash="b" * 64, expires_at=FUTURE
        )

        assert successor.previous_hash == "a" * 64
        assert store.find_by_hash("a" * 64) is None
        assert store.find_by_hash("b" * 64) is not None

    def test_rotate_of_consumed_hash_writes_nothing(self, store, session):
        user = UserFactory()
        store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)
        store.delete_by_hash("a" * 64)

        assert (
            store.rotate(token_hash="a" * 64, user_id=user.id, new_hash="b" * 64, expires_at=FUTURE)
            is None
        )
        assert store.find_by_hash("b" * 64) is None

    def test_duplicate_hash_is_rejected(self, store, session):
        user = UserFactory()
        store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)

        with pytest.raises(IntegrityError):
            store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)

    def test_delete_all_for_user_and_expired(self, store, session):
        alice, bob = UserFactory(), UserFactory()
        now = datetime.now(UTC)
        store.create(user_id=alice.id, token_hash="a" * 64, expires_at=FUTURE)
        store.create(user_id=alice.id, token_hash="b" * 64, expires_at=FUTURE)
        store.create(user_id=bob.id, token_hash="c" * 64, expires_at=now - timedelta(seconds=1))
        store.create(user_id=bob.id, token_hash="d" * 64, expires_at=FUTURE)

        assert store.delete_all_for_user(alice.id) == 2
        assert store.delete_expired(now) == 1
        assert store.find_by_hash("d" * 64) is not None

    def test_outage_raises_store_unavailable(self):
        store = SQLAlchemyRefreshTokenStore(
            uow_factory=_DownUnitOfWork, ro_uow_factory=_DownUnitOfWork
        )
        with pytest.raises(StoreUnavailableError) as excinfo:
            store.find_by_hash("a" * 64)
        assert excinfo.value.store == "refresh_tokens"
        with pytest.raises(StoreUnavailableError):
            store.delete_by_hash("a" * 64)


# ---------------------------- Reset tokens -------------------------------- #
class TestSQLAlchemyPasswordResetStore:
    @pytest.fixture()
    def store(self):
        return SQLAlchemyPasswordResetStore()

    def test_create_find_and_claim(self, store, session):
        user = UserFactory()
        record = store.create(user_id=user.id, token_hash="r" * 64, expires_at=FUTURE)
        assert isinstance(record, PasswordResetTokenRecord)

        now = datetime.now(UTC)
        assert store.mark_used("r" * 64, now) is True
        assert store.mark_used("r" * 64, now) is False
        found = store.find_by_hash("r" * 64)
        assert found.used_at is not None
        assert found.is_redeemable(now) is False

    def test_delete_for_user_and_expired(self, store, session):
        user = UserFactory()
        now = datetime.now(UTC)
        store.create(user_id=user.id, token_hash="a" * 64, expires_at=FUTURE)
        store.create(user_id=user.id, token_hash="b" * 64, expires_at=now - timedelta(minutes=1))
        other = UserFactory()
        store.create(user_id=other.id, token_hash="c" * 64, expires_at=FUTURE)
        store.mark_used("c" * 64, now)

        assert store.delete_expired(now) == 2
        assert store.delete_for_user(user.id) == 1


# ---------------------------- Credentials --------------------------------- #
class TestSQLAlchemyCredentialStore:
    @pytest.fixture()
    def store(self):
        return SQLAlchemyCredentialStore()

    def test_authenticate(self, store, session):
        user = UserFactory(email="squat@example.com")
        session.commit()

        assert store.authenticate("SQUAT@example.com", DEFAULT_PASSWORD) == user.id
        assert store.authenticate("squat@example.com", "nope") is None
        assert store.find_user_id_by_email("squat@example.com") == user.id
        assert store.find_user_id_by_email("bench@example.com") is None

    def test_set_password(self, store, session):
        user = UserFactory(email="dead@example.com")
        session.commit()

        store.set_password(user.id, "N3wPassword!")

        assert store.authenticate("dead@example.com", "N3wPassword!") == user.id
        assert store.authenticate("dead@example.com", DEFAULT_PASSWORD) is None


# --------------------------- Service over SQL ----------------------------- #
def test_rotation_and_reuse_detection_over_sql(session):
    user = UserFactory()
    session.commit()
    service = SessionTokenService(
        refresh_store=SQLAlchemyRefreshTokenStore(),
        token_provider=StubTokenProvider(),
    )
    t0 = service.issue(user.id)
    t1 = service.rotate(RefreshIn(refresh_token=t0)).refresh_token
    t2 = service.issue(user.id)

    with pytest.raises(InvalidTokenError):
        service.rotate(RefreshIn(refresh_token=t0))
    store = SQLAlchemyRefreshTokenStore()
    assert store.find_by_hash(hash_token(t1)) is None
    assert store.find_by_hash(hash_token(t2)) is None


def test_rotation_retry_succeeds_after_successor_write_times_out(session, monkeypatch):
    user = UserFactory()
    session.commit()
    service = SessionTokenService(
        refresh_store=SQLAlchemyRefreshTokenStore(),
        token_provider=StubTokenProvider(),
    )
    t0 = service.issue(user.id)

    real_create = RefreshTokenRepository.create
    calls = {"n": 0}

    def _create_times_out_once(self, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT", {}, TimeoutError("statement timeout"))
        return real_create(self, **kwargs)

    monkeypatch.setattr(RefreshTokenRepository, "create", _create_times_out_once)

    with pytest.raises(StoreUnavailableError):
        service.rotate(RefreshIn(refresh_token=t0))
    store = SQLAlchemyRefreshTokenStore()
    assert store.find_by_hash(hash_token(t0)) is not None

    t1 = service.rotate(RefreshIn(refresh_token=t0)).refresh_token

    assert store.find_by_hash(hash_token(t0)) is None
    assert store.find_by_hash(hash_token(t1)).previous_hash == hash_token(t0)


# ---------------------------- Error mapping ------------------------------- #
def test_store_errors_maps_invalidated_connection():
    err = DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True)
    with pytest.raises(StoreUnavailableError), store_errors("refresh_tokens"):
        raise err


def test_store_errors_lets_other_dbapi_errors_through():
    err = DBAPIError("SELECT 1", {}, Exception("syntax"))
    with pytest.raises(DBAPIError), store_errors("refresh_tokens"):
        raise err
