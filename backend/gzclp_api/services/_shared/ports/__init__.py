"""
gzclp_api.services._shared.ports
================================

Collection of *ports* (hexagonal interfaces) the session-security services
depend on.

Modules
-------
- :mod:`token_provider`:
    :class:`~.TokenProvider`, abstraction for access-token minting.
- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenRecord`, hashed
    refresh tokens with rotation breadcrumbs.
- :mod:`password_reset_store`:
    :class:`~.PasswordResetStore` and :class:`~.PasswordResetTokenRecord`,
    single-use reset tokens.
- :mod:`credential_store`:
    :class:`~.CredentialStore`, sign-in and password changes.
- :mod:`reset_notifier`:
    :class:`~.ResetNotifier`, reset-link delivery.
- :mod:`rate_limit_store`:
    :class:`~.RateLimitStore`, sliding-window admission.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, in-process) live under
``gzclp_api.infra``. Each port module also ships a lock-guarded in-memory
double for unit tests.
"""

from __future__ import annotations

from .credential_store import CredentialStore, InMemoryCredentialStore
from .password_reset_store import (
    InMemoryPasswordResetStore,
    PasswordResetStore,
    PasswordResetTokenRecord,
)
from .rate_limit_store import RateLimitStore
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from .reset_notifier import (
    OutboxMessage,
    OutboxResetNotifier,
    ResetNotifier,
    UndeliveredResetNotifier,
)
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "TokenProvider",
    "StubTokenProvider",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "InMemoryRefreshTokenStore",
    "PasswordResetStore",
    "PasswordResetTokenRecord",
    "InMemoryPasswordResetStore",
    "CredentialStore",
    "InMemoryCredentialStore",
    "ResetNotifier",
    "OutboxResetNotifier",
    "UndeliveredResetNotifier",
    "OutboxMessage",
    "RateLimitStore",
]
