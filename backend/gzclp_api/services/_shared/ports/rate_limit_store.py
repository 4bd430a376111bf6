from __future__ import annotations

from typing import Protocol


class RateLimitStore(Protocol):
    """
    Sliding-window admission decision shared by every rate-limited endpoint.

    ``check`` records the request when admitted. Implementations backed by a
    remote store fail open: an unreachable store admits the request.
    """

    backend: str

    def check(self, key: str, window_ms: int, max_requests: int) -> bool:
        """
        Admit or deny one request for ``key``.

        :param key: ``"<endpoint>:<caller identity>"``.
        :param window_ms: Rolling window length in milliseconds.
        :param max_requests: Maximum admitted requests per window.
        :returns: ``True`` when admitted.
        """
        ...

    def ping(self) -> bool:
        """Report whether the backing store answers. Never raises."""
        ...
