"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from gzclp_api.api.deps import json_response, timing
from gzclp_api.core.extensions import db
from gzclp_api.infra.wiring import rate_limit_store

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report database reachability and the rate-limit backend.

    Only the database decides the status; the limiter fails open, so an
    unreachable Redis is reported but leaves the service usable.
    """

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error", extra={"event": "health.db_error"})
        db_status = "fail"
    limiter = rate_limit_store()
    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "rate_limit_backend": limiter.backend,
        "rate_limit_reachable": limiter.ping(),
        "version": current_app.config.get("APP_VERSION", "dev"),
        "commit": current_app.config.get("APP_COMMIT", "unknown"),
    }
    return json_response(payload, status=200 if db_status == "ok" else 503)
