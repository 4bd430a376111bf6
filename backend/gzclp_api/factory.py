"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

import logging

from flask import Flask

from gzclp_api.core.config import BaseConfig, get_config, validate_secrets
from gzclp_api.core.logger import configure_logging, init_app as init_logging

log = logging.getLogger(__name__)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config object (or import path) overriding ``APP_ENV``.
    :raises RuntimeError: When a production config carries an unsafe JWT secret.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    validate_secrets(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers if running behind a reverse proxy (TRUST_PROXY)
    from gzclp_api.core import proxy

    proxy.init_app(app)

    from gzclp_api.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from gzclp_api.core import cors

    cors.init_app(app)

    from gzclp_api.api import init_app as init_api

    init_api(app)

    from gzclp_api.core import errors

    errors.init_app(app)

    from gzclp_api import cli as app_cli

    app_cli.init_app(app)

    _start_token_sweeper(app)

    return app


def _start_token_sweeper(app: Flask) -> None:
    """Purge expired tokens at start-up and every ``TOKEN_SWEEP_INTERVAL_HOURS``."""

    if app.config.get("TESTING") or not app.config.get("TOKEN_SWEEP_ENABLED", True):
        return

    from gzclp_api.infra.wiring import session_token_service
    from gzclp_api.services.auth.sweeper import TokenSweeper

    def _sweep() -> None:
        with app.app_context():
            session_token_service().sweep()

    hours = float(app.config.get("TOKEN_SWEEP_INTERVAL_HOURS", 6.0))
    sweeper = TokenSweeper(_sweep, interval_seconds=hours * 3600)
    app.extensions["token_sweeper"] = sweeper
    sweeper.start()
    log.info("Token sweeper started", extra={"event": "auth.token_sweeper_started"})
