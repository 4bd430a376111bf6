"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

from gzclp_api.core.logger import REQUEST_ID_HEADER

# Headers a browser client needs to read on error and throttled responses
EXPOSED_HEADERS = ["Retry-After", REQUEST_ID_HEADER]


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    The refresh token travels in a cookie, so credentials are only allowed
    for an explicit origin list. A blank or ``"*"`` ``CORS_ORIGINS`` opens
    the API to any origin without credentials, which leaves the refresh
    endpoints unusable cross-site.

    :param app: Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE``
        settings are consulted.
    """
    origins = [o.strip() for o in app.config.get("CORS_ORIGINS", "").split(",") if o.strip()]
    allow_any = not origins or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if allow_any else origins}},
        supports_credentials=not allow_any,
        expose_headers=EXPOSED_HEADERS,
        methods=["GET", "POST", "OPTIONS"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
