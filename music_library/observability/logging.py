import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from flask import g, has_app_context, has_request_context, request

# Catalog fields modules may attach with ``extra=``; only those present are rendered
CATALOG_FIELDS = ("song_author", "song_title", "attempt", "state", "delay_seconds", "upstream_status")


class RequestContextFilter(logging.Filter):
    """Stamp the request id, method, path and client address onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = getattr(g, "request_id", None) if has_app_context() else None
        in_request = has_request_context()
        record.method = request.method if in_request else None
        record.path = request.path if in_request else None
        record.remote_addr = request.headers.get("X-Forwarded-For", request.remote_addr) if in_request else None
        return True


def catalog_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {name: getattr(record, name) for name in CATALOG_FIELDS if hasattr(record, name)}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message, request context and catalog fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("request_id", "method", "path", "remote_addr"):
            payload[key] = getattr(record, key, None)
        payload.update(catalog_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_structured_logging(app) -> None:
    """Set the root level from LOG_LEVEL and add a JSON stdout handler once."""
    root = logging.getLogger()
    root.setLevel(app.config.get("LOG_LEVEL", "info").upper())

    for handler in root.handlers:
        # The per-run log file is JSON too; only a console stream counts here
        if isinstance(handler, logging.FileHandler):
            continue
        if isinstance(handler, logging.StreamHandler) and isinstance(handler.formatter, JsonFormatter):
            return
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(JsonFormatter())
    stream_handler.addFilter(RequestContextFilter())
    root.addHandler(stream_handler)
