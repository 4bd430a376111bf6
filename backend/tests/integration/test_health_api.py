from __future__ import annotations

import fakeredis
from gzclp_api.infra.redis.redis_rate_limit_store import RedisSlidingWindowStore


def test_health_reports_db_and_limiter_backend(client):
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["rate_limit_backend"] == "memory"
    assert body["rate_limit_reachable"] is True


def test_health_reports_redis_backend_when_selected(app, client):
    app.extensions["rate_limit_store"] = RedisSlidingWindowStore(fakeredis.FakeRedis())

    body = client.get("/api/v1/health").get_json()

    assert body["rate_limit_backend"] == "redis"
    assert body["rate_limit_reachable"] is True


def test_unreachable_redis_is_reported_without_degrading(app, client):
    app.extensions["rate_limit_store"] = RedisSlidingWindowStore.from_url(
        "redis://127.0.0.1:1/0", socket_timeout=0.05
    )

    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"
    assert resp.get_json()["rate_limit_reachable"] is False
