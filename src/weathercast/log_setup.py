"""Structured console logging for the weather dashboard."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_for_logging, sanitize_text

# Fields passed through ``extra=`` that are copied into the JSON event.
CONTEXT_FIELDS = ("cache_key", "generation", "request_type", "code", "outcome")


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per record, with fetch context when the caller supplies it."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                event[field] = sanitize_for_logging(value)
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(name: str = "weathercast", level: int = logging.INFO) -> logging.Logger:
    """Configure the process-wide ``weathercast`` logger once; later calls reuse it."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    # stderr keeps the rich dashboard on stdout readable.
    handler = logging.StreamHandler()
    handler.setFormatter(JsonConsoleFormatter())
    logger.addHandler(handler)
    return logger
