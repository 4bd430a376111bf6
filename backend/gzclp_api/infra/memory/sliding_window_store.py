from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable

from gzclp_api.services._shared.ports import RateLimitStore

# Every Nth call drops keys whose window is empty
SWEEP_EVERY = 100


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


class SlidingWindowRateLimitStore(RateLimitStore):
    """
    Per-process sliding-window limiter.

    Keeps, per key, the admission timestamps (ms) still inside the window. A
    single lock serializes every prune/count/append so two threads can never
    both take the last slot.

    .. note::
       Limits are per process. With several workers each one enforces its own
       budget; use :class:`~gzclp_api.infra.redis.redis_rate_limit_store.RedisSlidingWindowStore`
       for a shared limit.

    :param clock: Monotonic clock in whole milliseconds, injectable for tests.
    """

    backend = "memory"

    def __init__(self, *, clock: Callable[[], int] = monotonic_ms) -> None:
        self._clock = clock
        self._hits: dict[str, tuple[int, deque[int]]] = {}
        self._calls = 0
        self._lock = threading.Lock()

    def check(self, key: str, window_ms: int, max_requests: int) -> bool:
        now = self._clock()
        with self._lock:
            self._calls += 1
            if self._calls % SWEEP_EVERY == 0:
                self._sweep(now)

            entry = self._hits.get(key)
            hits = entry[1] if entry is not None else deque()
            self._hits[key] = (window_ms, hits)

            cutoff = now - window_ms
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= max_requests:
                return False
            hits.append(now)
            return True

    def ping(self) -> bool:
        return True

    def _sweep(self, now: int) -> None:
        # Caller holds the lock
        stale = [
            key
            for key, (window_ms, hits) in self._hits.items()
            if not hits or hits[-1] <= now - window_ms
        ]
        for key in stale:
            del self._hits[key]

    def __len__(self) -> int:
        """Number of tracked keys."""
        with self._lock:
            return len(self._hits)
