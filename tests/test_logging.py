import json
import logging

from app.logging import JsonFormatter, MaskingFilter, ContextFilter, sync_run_context


def _record(msg, level=logging.INFO):
    return logging.LogRecord("storefront", level, __file__, 1, msg, None, None)


def test_request_id_roundtrip(client):
    resp = client.get("/__log", headers={"X-Request-ID": "req-123"})
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-123"


def test_request_id_generated_when_absent(client):
    resp = client.get("/__ok")
    assert len(resp.headers["X-Request-ID"]) == 32


def test_sync_run_id_is_attached_inside_context():
    flt = ContextFilter()
    with sync_run_context("run-7"):
        inside = _record({"event": "sync_complete"})
        flt.filter(inside)
    outside = _record("after")
    flt.filter(outside)

    assert inside.sync_run_id == "run-7"
    assert outside.sync_run_id == "n/a"


def test_json_formatter_merges_dict_messages():
    record = _record({"event": "sync_complete", "entity_type": "brand", "created": 2})
    ContextFilter().filter(record)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["event"] == "sync_complete"
    assert payload["created"] == 2
    assert payload["level"] == "INFO"
    assert "message" not in payload


def test_credentials_are_masked():
    record = _record({"event": "client", "api_key": "k", "API_SECRET": "s", "base_url": "http://erp"})
    MaskingFilter().filter(record)

    assert record.msg["api_key"] == "[REDACTED]"
    assert record.msg["API_SECRET"] == "[REDACTED]"
    assert record.msg["base_url"] == "http://erp"


def test_nested_credentials_are_masked():
    record = _record({"event": "client", "headers": {"Authorization": "token k:s"}})
    MaskingFilter().filter(record)

    assert record.msg["headers"]["Authorization"] == "[REDACTED]"


def test_context_filter_outside_request():
    record = _record("plain")
    ContextFilter().filter(record)

    assert record.request_id == "n/a"
    assert record.trace_id == "n/a"
