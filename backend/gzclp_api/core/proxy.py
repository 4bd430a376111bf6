"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when trusted.

    Parameters
    ----------
    app: flask.Flask
        Application whose WSGI pipeline should respect upstream proxy headers.

    Notes
    -----
    Controlled by ``TRUST_PROXY`` (defaults to ``False``). Without it
    ``request.remote_addr`` stays the transport peer and ``X-Forwarded-For``
    is ignored, so clients cannot pick their own rate-limit identity.
    ``PROXY_HOPS`` sets how many forwarded entries are trusted.
    """
    if not app.config.get("TRUST_PROXY", False):
        return
    hops = max(int(app.config.get("PROXY_HOPS", 1)), 1)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops)
