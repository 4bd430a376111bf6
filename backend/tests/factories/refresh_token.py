"""Factory Boy definitions for the token tables."""

from __future__ import annotations

from datetime import timedelta

import factory
from gzclp_api.models import PasswordResetToken, RefreshToken
from gzclp_api.models.base import utcnow
from gzclp_api.services._shared.security import generate_opaque_token, hash_token
from tests.factories import BaseFactory
from tests.factories.user import UserFactory


class RefreshTokenFactory(BaseFactory):
    """Persisted refresh token row; the raw value is not recoverable."""

    class Meta:
        model = RefreshToken

    id = None
    user = factory.SubFactory(UserFactory)
    token_hash = factory.LazyFunction(lambda: hash_token(generate_opaque_token()))
    previous_hash = None
    expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(days=7))


class PasswordResetTokenFactory(BaseFactory):
    """Persisted, unused password reset token row."""

    class Meta:
        model = PasswordResetToken

    id = None
    user = factory.SubFactory(UserFactory)
    token_hash = factory.LazyFunction(lambda: hash_token(generate_opaque_token()))
    expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(hours=1))
    used_at = None
