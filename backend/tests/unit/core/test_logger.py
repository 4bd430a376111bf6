from __future__ import annotations

import json
import logging

from gzclp_api.core.logger import REQUEST_ID_HEADER, JSONFormatter, RequestIdFilter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("gzclp_api.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_renders_structured_extras():
    record = _record(event="auth.refresh", user_id=7, backend="memory", request_id="rid-1")

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["event"] == "auth.refresh"
    assert payload["user_id"] == 7
    assert payload["backend"] == "memory"
    assert payload["request_id"] == "rid-1"


def test_json_formatter_omits_absent_extras():
    payload = json.loads(JSONFormatter().format(_record()))
    assert "event" not in payload
    assert "user_id" not in payload


def test_request_id_filter_outside_request_leaves_none():
    record = _record()
    assert RequestIdFilter().filter(record) is True
    assert record.request_id is None


def test_request_id_filter_keeps_preset_value():
    record = _record(request_id="already-set")
    RequestIdFilter().filter(record)
    assert record.request_id == "already-set"


def test_response_echoes_incoming_request_id(client):
    resp = client.get("/api/v1/health", headers={REQUEST_ID_HEADER: "abc-123"})
    assert resp.headers[REQUEST_ID_HEADER] == "abc-123"


def test_response_gets_generated_request_id(client):
    resp = client.get("/api/v1/health")
    assert resp.headers[REQUEST_ID_HEADER]


def test_request_id_is_not_carried_over_between_requests(app, client):
    # One app context spanning both requests, as a CLI or shell session would hold
    with app.app_context():
        first = client.get("/api/v1/health")
        second = client.get("/api/v1/health", headers={REQUEST_ID_HEADER: "abc-123"})

    assert second.headers[REQUEST_ID_HEADER] == "abc-123"
    assert first.headers[REQUEST_ID_HEADER] != "abc-123"
