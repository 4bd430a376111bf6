"""Pick the rate-limit store once per process."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from redis.exceptions import RedisError  # type: ignore[import-untyped]

from gzclp_api.infra.memory.sliding_window_store import SlidingWindowRateLimitStore
from gzclp_api.infra.redis.redis_rate_limit_store import RedisSlidingWindowStore
from gzclp_api.services._shared.ports import RateLimitStore

log = logging.getLogger(__name__)


class RateLimitStoreSelector:
    """
    Lazily resolve the process-wide :class:`RateLimitStore`.

    ``REDIS_URL`` set selects the Redis store; unset, or a URL that cannot
    even build a client, selects the in-process store. Reachability is not
    checked here: the Redis store fails open per request instead, so a Redis
    outage at boot does not pin the process to per-process limits.

    :param redis_url: Connection URL, or ``None``.
    :param socket_timeout: Redis socket and connect timeout in seconds.
    :param redis_factory: Builds the Redis store from a URL (tests inject fakes).
    """

    def __init__(
        self,
        redis_url: str | None,
        *,
        socket_timeout: float = 0.5,
        redis_factory: Callable[..., RateLimitStore] = RedisSlidingWindowStore.from_url,
    ) -> None:
        self._redis_url = redis_url
        self._socket_timeout = socket_timeout
        self._redis_factory = redis_factory
        self._store: RateLimitStore | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> RateLimitStoreSelector:
        return cls(
            config.get("REDIS_URL") or None,
            socket_timeout=float(config.get("REDIS_SOCKET_TIMEOUT", 0.5)),
        )

    def get(self) -> RateLimitStore:
        """Return the selected store, resolving it on first use."""
        store = self._store
        if store is not None:
            return store
        with self._lock:
            if self._store is None:
                self._store = self._resolve()
            return self._store

    def _resolve(self) -> RateLimitStore:
        if not self._redis_url:
            store: RateLimitStore = SlidingWindowRateLimitStore()
        else:
            try:
                store = self._redis_factory(self._redis_url, socket_timeout=self._socket_timeout)
            except (ValueError, RedisError) as exc:
                # The URL may embed credentials; never log it
                log.warning(
                    "Could not build Redis rate limiter (%s); using in-process store",
                    exc.__class__.__name__,
                    extra={"event": "rate_limit.fallback", "backend": "memory"},
                )
                store = SlidingWindowRateLimitStore()
        log.info(
            "Rate limiter backend selected",
            extra={"event": "rate_limit.backend_selected", "backend": store.backend},
        )
        return store
