"""JSON log lines tagged with request, trace and sync-run ids.

Log calls pass either a plain string or a dict; dict messages are merged
into the JSON payload, so ``logger.info({"event": "sync_complete", ...})``
produces one flat, queryable line.
"""
import json
import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from flask import g, has_app_context
from opentelemetry.trace import get_current_span

# ERPNext credentials and the sync bearer key must never reach a log line
SENSITIVE_KEYS = {"api_key", "api_secret", "authorization", "token", "password", "secret_key"}
REDACTED = "[REDACTED]"
UNSET = "n/a"

_sync_run_id: ContextVar[str] = ContextVar("sync_run_id", default=UNSET)


@contextmanager
def sync_run_context(run_id: str):
    """Tag every log record emitted inside the block with ``run_id``."""
    token = _sync_run_id.set(run_id)
    try:
        yield run_id
    finally:
        _sync_run_id.reset(token)


def current_sync_run_id() -> str:
    return _sync_run_id.get()


def current_request_id() -> str:
    if not has_app_context():
        return UNSET
    return getattr(g, "request_id", None) or UNSET


def current_trace_ids():
    ctx = get_current_span().get_span_context()
    if not ctx.is_valid:
        return UNSET, UNSET
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class ContextFilter(logging.Filter):
    """Stamp correlation ids onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        record.trace_id, record.span_id = current_trace_ids()
        record.sync_run_id = current_sync_run_id()
        return True


def mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: (REDACTED if str(key).lower() in SENSITIVE_KEYS else mask(item))
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [mask(item) for item in value]
    return value


class MaskingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Raw values stay visible only for DEBUG outside production
        env = os.getenv("APP_ENV", "development").lower()
        if record.levelno == logging.DEBUG and env != "production":
            return True
        if isinstance(record.msg, dict):
            record.msg = mask(record.msg)
        if isinstance(record.args, dict):
            record.args = mask(record.args)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        base = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "request_id": getattr(record, "request_id", UNSET),
            "trace_id": getattr(record, "trace_id", UNSET),
            "span_id": getattr(record, "span_id", UNSET),
            "sync_run_id": getattr(record, "sync_run_id", UNSET),
        }
        if isinstance(record.msg, dict):
            base.update(record.msg)
        else:
            base["message"] = record.getMessage()
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, default=str)


def build_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z"))
    handler.addFilter(ContextFilter())
    handler.addFilter(MaskingFilter())
    return handler


def _level_for(app) -> int:
    level_name = app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL")
    if level_name:
        return getattr(logging, level_name.upper(), logging.INFO)
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app) -> None:
    handler = build_handler()
    level = _level_for(app)

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(level)

    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)

    for name in ("werkzeug", "celery"):
        lib = logging.getLogger(name)
        lib.setLevel(level)
        lib.handlers.clear()
        lib.addHandler(handler)
