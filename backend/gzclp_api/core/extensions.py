"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

from gzclp_api.core.errors import Unauthorized, problem_response

if TYPE_CHECKING:
    from gzclp_api.services._shared.ports import ResetNotifier

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def _register_jwt_handlers() -> None:
    """Render flask-jwt-extended failures as RFC 7807 problems."""

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return problem_response(Unauthorized("Missing access token"))

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return problem_response(Unauthorized("Invalid access token", code="auth_invalid_token"))

    @jwt.expired_token_loader
    def _expired_token(header: dict[str, Any], payload: dict[str, Any]):
        return problem_response(Unauthorized("Access token expired", code="auth_access_expired"))


_register_jwt_handlers()


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT and the token-security stores.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`gzclp_api.models` package so SQLAlchemy metadata is ready for
        migrations.

    Notes
    -----
    The rate-limit store is resolved here, once per process, and exposed as
    ``app.extensions["rate_limit_store"]``. An unusable ``REDIS_URL`` falls
    back to the in-process store instead of failing the boot.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from gzclp_api import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    from gzclp_api.infra.rate_limit import RateLimitStoreSelector

    selector = RateLimitStoreSelector.from_config(app.config)
    app.extensions["rate_limit_selector"] = selector
    app.extensions["rate_limit_store"] = selector.get()

    app.extensions.setdefault("reset_notifier", default_reset_notifier(app.config))


def default_reset_notifier(config: Mapping[str, Any]) -> ResetNotifier:
    """Pick the reset-link notifier; no outbound mail integration exists yet.

    Development and tests keep links in a bounded outbox. Every other
    environment drops them with a warning so no credential stays in memory.
    """
    from gzclp_api.services._shared.ports import OutboxResetNotifier, UndeliveredResetNotifier

    if config.get("RESET_OUTBOX_ENABLED", False):
        return OutboxResetNotifier()
    return UndeliveredResetNotifier()
