"""Structured logging for GymSync.

Controlled via GYMSYNC_LOG_FORMAT env var or ``gymsync --log-format``:
"text" (default) or "json". Both formats carry the ``gymsync_*`` extras
(sync code, channel, session id, row id) that modules attach to records.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

LOG_FORMATS: tuple[str, ...] = ("text", "json")

EXTRA_PREFIX = "gymsync_"


def gymsync_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key.startswith(EXTRA_PREFIX)}


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
        }

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        log_entry.update(gymsync_extras(record))
        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain lines with the extras appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = gymsync_extras(record)
        if not extras:
            return line
        # Exception text, if any, follows the first line.
        first, sep, rest = line.partition("\n")
        tags = " ".join(f"{key[len(EXTRA_PREFIX):]}={value}" for key, value in sorted(extras.items()))
        return f"{first} [{tags}]{sep}{rest}"


def setup_logging(log_format: str, level: int | str = logging.INFO) -> None:
    """Configure root logger with either JSON or plaintext format."""
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format {log_format!r}; expected one of {', '.join(LOG_FORMATS)}")

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    root.addHandler(handler)
