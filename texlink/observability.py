from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterator

from flask import g, has_request_context, request


REQUEST_ID_HEADER = "X-Request-Id"

_request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("texlink_request_id", default="")

# Attributes every LogRecord carries; anything else on a record came in through ``extra``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}


def _clean(value: str | None) -> str:
    return str(value or "").strip()


@contextlib.contextmanager
def bind_request_id(request_id: str | None) -> Iterator[str]:
    """Tag log lines emitted outside a request (CLI, seed scripts)."""
    token = _request_id_var.set(_clean(request_id) or "n/a")
    try:
        yield _request_id_var.get()
    finally:
        _request_id_var.reset(token)


def current_request_id(default: str = "n/a") -> str:
    if has_request_context():
        request_id = _clean(getattr(g, "request_id", ""))
        if request_id:
            return request_id
    return _request_id_var.get() or default


def ensure_request_id() -> str:
    request_id = _clean(getattr(g, "request_id", ""))
    if not request_id:
        request_id = _clean(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())
        g.request_id = request_id
    _request_id_var.set(request_id)
    return request_id


def _json_default(value: object) -> object:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if has_request_context():
            payload["request_id"] = current_request_id()
            payload["path"] = request.path
            payload["method"] = request.method
        else:
            payload["request_id"] = _clean(getattr(record, "request_id", "")) or current_request_id()

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload or key.startswith("_") or callable(value):
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=_json_default)


def configure_json_logging(app) -> None:
    if not bool(app.config.get("LOG_JSON", True)):
        return
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).strip().upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    app.logger.handlers = []
    app.logger.propagate = True
