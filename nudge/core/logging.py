"""NUDGE — Structured JSON Logging.

One stdout handler sits on the `nudge` logger; every `nudge.<area>` logger
propagates to it, so a line is written once however many modules log.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from nudge.config import settings

ROOT_LOGGER = "nudge"

# Copied onto the line when a call site passes them via `extra=`
EXTRA_FIELDS = (
    "campaign_id",
    "batch",
    "endpoint",
    "entity_id",
    "duration_ms",
    "status_code",
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, stamped with the record's own time."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["source"] = f"{record.module}:{record.lineno}"
        entry.update(
            (key, getattr(record, key)) for key in EXTRA_FIELDS if hasattr(record, key)
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the JSON handler to the package logger once and set its level."""
    level = level or settings.log_level
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
