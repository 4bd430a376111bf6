"""Factory Boy definition for :class:`gzclp_api.models.user.User`."""

from __future__ import annotations

import factory
from gzclp_api.models.user import User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`gzclp_api.models.user.User` instances.

    The password goes through the model setter, so ``password_hash`` is
    always a real Werkzeug hash of :data:`DEFAULT_PASSWORD` unless
    ``password=...`` is passed.
    """

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"lifter{n}@example.com")
    full_name = factory.Faker("name")
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD
