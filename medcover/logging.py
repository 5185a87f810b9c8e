"""
JSON-lines logging for the `medcover` logger tree.

Anything passed through `extra=` (event_id, staff_id, ...) becomes a
top-level key of the emitted object.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from medcover.config import settings

ROOT_LOGGER = "medcover"

# attributes every LogRecord carries; anything else came from `extra=`
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "service": settings.service_name,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        )
        if record.exc_info and record.exc_info[1]:
            payload["exc_type"] = type(record.exc_info[1]).__name__
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach the JSON handler to the package logger once; safe to call again."""
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h.formatter, JSONLineFormatter) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONLineFormatter())
        root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
    return root


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
