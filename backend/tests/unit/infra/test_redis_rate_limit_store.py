"""
Unit tests for RedisSlidingWindowStore using fakeredis.

fakeredis runs the Lua script in-process (``fakeredis[lua]``), so these tests
exercise the same server-side prune/count/admit step used in production.
"""

from __future__ import annotations

from unittest import mock

import fakeredis
import pytest
import redis
from gzclp_api.infra.redis.redis_rate_limit_store import RedisSlidingWindowStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_700_000_000_000

    def __call__(self) -> int:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(fake_redis, clock):
    return RedisSlidingWindowStore(fake_redis, clock=clock)


def test_admits_up_to_max_then_denies(store):
    assert [store.check("auth.login:ip:1.1.1.1", 1000, 3) for _ in range(4)] == [
        True,
        True,
        True,
        False,
    ]


def test_readmits_once_oldest_hit_leaves_window(store, clock):
    for _ in range(3):
        assert store.check("k", 50, 3)
    assert not store.check("k", 50, 3)

    clock.advance_ms(60)
    assert store.check("k", 50, 3)


def test_denied_request_leaves_set_untouched(store, fake_redis):
    store.check("k", 1000, 1)
    store.check("k", 1000, 1)
    store.check("k", 1000, 1)

    assert fake_redis.zcard("ratelimit:k") == 1


def test_same_millisecond_hits_are_counted_separately(store, fake_redis):
    # The clock does not move between calls
    assert store.check("k", 1000, 5)
    assert store.check("k", 1000, 5)
    assert fake_redis.zcard("ratelimit:k") == 2


def test_key_expires_with_window(store, fake_redis):
    store.check("k", 5000, 3)
    ttl = fake_redis.pttl("ratelimit:k")
    assert 0 < ttl <= 5000


def test_instances_share_budget(fake_redis, clock):
    first = RedisSlidingWindowStore(fake_redis, clock=clock)
    second = RedisSlidingWindowStore(fake_redis, clock=clock)

    assert first.check("auth.login:ip:9.9.9.9", 1000, 2)
    assert second.check("auth.login:ip:9.9.9.9", 1000, 2)
    assert not first.check("auth.login:ip:9.9.9.9", 1000, 2)
    assert not second.check("auth.login:ip:9.9.9.9", 1000, 2)


def test_custom_prefix_namespaces_keys(fake_redis, clock):
    store = RedisSlidingWindowStore(fake_redis, key_prefix="gzclp:rl:", clock=clock)
    store.check("k", 1000, 1)
    assert fake_redis.exists("gzclp:rl:k") == 1


# ------------------------------ Fail-open ---------------------------------- #
def test_without_client_every_request_is_admitted():
    store = RedisSlidingWindowStore(None)
    assert all(store.check("k", 1000, 1) for _ in range(10))
    assert store.ping() is False


@pytest.mark.parametrize(
    "error",
    [redis.ConnectionError("refused"), redis.TimeoutError("timed out"), redis.ResponseError("NOSCRIPT")],
)
def test_store_errors_fail_open_with_warning(error, caplog):
    client = mock.Mock(spec=redis.Redis)
    client.register_script.return_value = mock.Mock(side_effect=error)
    store = RedisSlidingWindowStore(client)

    with caplog.at_level("WARNING"):
        assert all(store.check("k", 1000, 1) for _ in range(5))

    assert any(getattr(r, "event", None) == "rate_limit.fail_open" for r in caplog.records)


def test_unreachable_server_fails_open():
    # Nothing listens on port 1; the short timeout keeps the test fast
    store = RedisSlidingWindowStore.from_url("redis://127.0.0.1:1/0", socket_timeout=0.05)
    assert store.check("k", 1000, 1) is True
    assert store.check("k", 1000, 1) is True
    assert store.ping() is False


def test_from_url_rejects_malformed_url():
    with pytest.raises(ValueError):
        RedisSlidingWindowStore.from_url("notaurl://host")


def test_ping_reports_live_server(store):
    assert store.ping() is True
