"""Bind the service-layer ports to their production adapters.

Views, CLI commands and the background sweeper build services through these
helpers. They read settings from ``current_app`` and therefore need an active
application context.
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from gzclp_api.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from gzclp_api.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from gzclp_api.infra.sqlalchemy.password_reset_store import SQLAlchemyPasswordResetStore
from gzclp_api.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from gzclp_api.services._shared.ports import RateLimitStore, ResetNotifier
from gzclp_api.services.auth.dto import AuthTokenConfig
from gzclp_api.services.auth.service import SessionTokenService
from gzclp_api.services.password_reset.service import PasswordResetService


def token_config() -> AuthTokenConfig:
    cfg = current_app.config
    return AuthTokenConfig(
        access_expires=timedelta(minutes=int(cfg.get("ACCESS_TOKEN_MINUTES", 15))),
        refresh_expires=timedelta(days=int(cfg.get("REFRESH_TOKEN_DAYS", 7))),
    )


def session_token_service() -> SessionTokenService:
    return SessionTokenService(
        refresh_store=SQLAlchemyRefreshTokenStore(),
        token_provider=JWTTokenProvider(),
        credential_store=SQLAlchemyCredentialStore(),
        reset_store=SQLAlchemyPasswordResetStore(),
        token_cfg=token_config(),
    )


def reset_notifier() -> ResetNotifier:
    return current_app.extensions["reset_notifier"]


def password_reset_service() -> PasswordResetService:
    cfg = current_app.config
    return PasswordResetService(
        reset_store=SQLAlchemyPasswordResetStore(),
        refresh_store=SQLAlchemyRefreshTokenStore(),
        credential_store=SQLAlchemyCredentialStore(),
        notifier=reset_notifier(),
        reset_url_base=str(cfg["PASSWORD_RESET_URL"]),
        reset_ttl=timedelta(minutes=int(cfg.get("PASSWORD_RESET_TTL_MINUTES", 60))),
    )


def rate_limit_store() -> RateLimitStore:
    """The store resolved at start-up (see :func:`gzclp_api.core.extensions.init_app`)."""
    store = current_app.extensions.get("rate_limit_store")
    if store is None:
        store = current_app.extensions["rate_limit_selector"].get()
    return store
