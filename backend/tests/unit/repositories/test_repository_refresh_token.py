"""Unit tests for RefreshTokenRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from gzclp_api.repositories.refresh_token import RefreshTokenRepository
from tests.factories.refresh_token import RefreshTokenFactory
from tests.factories.user import UserFactory


class TestRefreshTokenRepository:
    @pytest.fixture()
    def repo(self):
        return RefreshTokenRepository()

    def test_create_and_get_by_hash(self, repo, session):
        user = UserFactory()
        expires = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

        row = repo.create(user_id=user.id, token_hash="a" * 64, expires_at=expires)
        session.commit()

        fetched = repo.get_by_hash("a" * 64)
        assert fetched.id == row.id
        assert fetched.user_id == user.id
        assert fetched.previous_hash is None
        assert fetched.expires_at == expires
        assert fetched.expires_at.tzinfo is not None

    def test_get_by_previous_hash_returns_successor(self, repo, session):
        parent = RefreshTokenFactory()
        child = RefreshTokenFactory(user=parent.user, previous_hash=parent.token_hash)
        session.commit()

        assert repo.get_by_previous_hash(parent.token_hash).id == child.id
        assert repo.get_by_previous_hash(child.token_hash) is None

    def test_delete_by_hash_reports_affected_rows(self, repo, session):
        token = RefreshTokenFactory()
        session.commit()

        assert repo.delete_by_hash(token.token_hash) == 1
        assert repo.delete_by_hash(token.token_hash) == 0
        assert repo.get_by_hash(token.token_hash) is None

    def test_delete_for_user_only_touches_that_user(self, repo, session):
        user = UserFactory()
        other = RefreshTokenFactory()
        mine = [t.token_hash for t in RefreshTokenFactory.create_batch(3, user=user)]
        other_hash = other.token_hash
        session.commit()

        assert repo.delete_for_user(user.id) == 3
        assert all(repo.get_by_hash(h) is None for h in mine)
        assert repo.get_by_hash(other_hash) is not None

    def test_delete_expired(self, repo, session):
        now = datetime.now(UTC)
        live = RefreshTokenFactory(expires_at=now + timedelta(minutes=5))
        RefreshTokenFactory(expires_at=now - timedelta(minutes=5))
        RefreshTokenFactory(expires_at=now)
        session.commit()

        assert repo.delete_expired(now) == 2
        assert repo.get_by_hash(live.token_hash) is not None

