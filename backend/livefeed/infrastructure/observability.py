"""Structured Logging: feed-aware formatters and one-shot root setup.

Invariants:
    - Every record carries timestamp (record creation time, UTC), level, logger, message
    - Feed context passed via extra= (post_id, subscriber_id, feed_version, ...)
      is surfaced in both formats; unknown extras are ignored
    - setup_logging owns exactly one root handler; calling it again replaces it

Design Decisions:
    - stdlib logging, no logging dependency
    - Text format keeps the same context as key=value pairs for local runs
    - Re-running setup (one lifespan per TestClient) must not duplicate output
"""

import json
import logging
from datetime import datetime, timezone

FEED_CONTEXT_KEYS = (
    "post_id", "subscriber_id", "subscriber_count", "error_code",
    "path", "attachment_ref", "feed_version", "feed_length",
)


def feed_context(record: logging.LogRecord) -> dict:
    """Feed context fields present on record, in FEED_CONTEXT_KEYS order."""
    return {
        key: record.__dict__[key]
        for key in FEED_CONTEXT_KEYS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **feed_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable line with feed context appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = feed_context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


class _FeedLogHandler(logging.StreamHandler):
    """Marker type so setup_logging can find its own handler again."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install (or replace) the root handler. Returns the installed handler."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _FeedLogHandler)]:
        root.removeHandler(existing)
    handler = _FeedLogHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
