"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import logging
import math
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from gzclp_api.core.errors import TooManyRequests
from gzclp_api.infra.wiring import rate_limit_store

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_user_id() -> int:
    """Return the authenticated user id (after :func:`require_auth`)."""

    return int(get_jwt_identity())


# ------------------------------- Rate limiting -------------------------------


def rate_limit_key(endpoint: str, identity: str) -> str:
    """Compose the limiter key ``"<endpoint>:<identity>"``."""

    return f"{endpoint}:{identity}"


def resolve_rate_limit_identity() -> str:
    """Identify the caller for rate limiting.

    Returns ``user:<id>`` when the request carries a valid access token and
    ``ip:<address>`` otherwise. The address is ``request.remote_addr``, which
    only reflects ``X-Forwarded-For`` when ``TRUST_PROXY`` installed
    :class:`~werkzeug.middleware.proxy_fix.ProxyFix`.
    """

    try:
        verify_jwt_in_request(optional=True)
        identity = get_jwt_identity()
    except (JWTExtendedException, PyJWTError):
        identity = None
    if identity is not None:
        return f"user:{identity}"
    return f"ip:{request.remote_addr or 'unknown'}"


def rate_limit(
    endpoint: str,
    *,
    max_requests: int | None = None,
    window_ms: int | None = None,
) -> Callable[[F], F]:
    """Reject the request with 429 once the caller exhausts its window.

    Defaults come from ``RATE_LIMIT_MAX_REQUESTS`` and ``RATE_LIMIT_WINDOW_MS``.
    A limiter backend outage admits the request (the store fails open).

    :param endpoint: Stable name scoping the budget, e.g. ``"auth.login"``.
    :param max_requests: Admitted requests per window for this endpoint.
    :param window_ms: Window length for this endpoint.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            cfg = current_app.config
            limit = max_requests if max_requests is not None else int(cfg.get("RATE_LIMIT_MAX_REQUESTS", 20))
            window = window_ms if window_ms is not None else int(cfg.get("RATE_LIMIT_WINDOW_MS", 60_000))
            identity = resolve_rate_limit_identity()
            if not rate_limit_store().check(rate_limit_key(endpoint, identity), window, limit):
                log.info("Rate limit exceeded", extra={"event": "rate_limit.denied", "endpoint": endpoint})
                raise TooManyRequests(retry_after=max(1, math.ceil(window / 1000)))
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
