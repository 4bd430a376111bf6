"""Tests for the User model."""

from __future__ import annotations

import pytest
from gzclp_api.models.user import User
from sqlalchemy.exc import IntegrityError


class TestUser:
    def test_password_hashing(self, session):
        u = User(email="Test@Example.com")
        u.password = "secret123"
        session.add(u)
        session.commit()
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False
        assert "secret123" not in u.password_hash

    def test_password_is_write_only(self):
        u = User(email="a@example.com")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            User(email="a@example.com").password = ""

    def test_email_normalized_and_unique(self, session):
        u1 = User(email="  Alice@Example.com ")
        u1.password = "pw"
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        u2 = User(email="alice@example.com")
        u2.password = "pw"
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    @pytest.mark.parametrize("bad", ["", "no-at-sign", "user@nodot"])
    def test_email_validation(self, bad):
        with pytest.raises(ValueError):
            User(email=bad)
