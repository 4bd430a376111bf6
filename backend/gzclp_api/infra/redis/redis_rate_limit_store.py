from __future__ import annotations

import logging
import time
from collections.abc import Callable
from uuid import uuid4

import redis  # type: ignore[import-untyped]
from redis.backoff import NoBackoff  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from redis.retry import Retry  # type: ignore[import-untyped]

from gzclp_api.services._shared.ports import RateLimitStore

log = logging.getLogger(__name__)

# Prune, count and admit in one server-side step. A denied request leaves the
# set untouched. Members carry a random suffix so same-millisecond hits from
# different instances never collapse into one entry.
SLIDING_WINDOW_LUA = r"""
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, '-inf', now - window)
local count = redis.call('ZCARD', key)
if count >= limit then
  return 0
end
redis.call('ZADD', key, now, member)
redis.call('PEXPIRE', key, window)
return 1
"""

DEFAULT_KEY_PREFIX = "ratelimit:"


def wall_clock_ms() -> int:
    # Windows are shared across hosts
    return time.time_ns() // 1_000_000


class RedisSlidingWindowStore(RateLimitStore):
    """
    Redis-backed sliding-window limiter shared by every app instance.

    Fails open: without a client, or when Redis errors or times out, the
    request is admitted and a warning is logged.

    :param client: Redis client, or ``None`` to admit everything.
    :param key_prefix: Namespace for limiter keys.
    :param clock: Wall clock in whole milliseconds, injectable for tests.
    """

    backend = "redis"

    def __init__(
        self,
        client: redis.Redis | None,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        clock: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self._client = client
        self._prefix = key_prefix
        self._clock = clock
        self._script = client.register_script(SLIDING_WINDOW_LUA) if client is not None else None

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float = 0.5) -> RedisSlidingWindowStore:
        """
        Build a store from a ``redis://`` URL without contacting the server.

        Commands are not retried: a limiter call either answers within
        ``socket_timeout`` or fails open.

        :raises ValueError: If the URL is malformed.
        """
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=Retry(NoBackoff(), 0),
        )
        return cls(client)

    def check(self, key: str, window_ms: int, max_requests: int) -> bool:
        if self._script is None:
            return True
        now_ms = self._clock()
        member = f"{now_ms}:{uuid4().hex}"
        try:
            allowed = self._script(
                keys=[f"{self._prefix}{key}"],
                args=[now_ms, window_ms, max_requests, member],
            )
        except RedisError as exc:
            log.warning(
                "Rate limit store unavailable, admitting request: %s",
                exc.__class__.__name__,
                extra={"event": "rate_limit.fail_open", "backend": self.backend},
            )
            return True
        return int(allowed) == 1

    def ping(self) -> bool:
        """Report whether Redis answers; never raises."""
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except RedisError:
            return False
