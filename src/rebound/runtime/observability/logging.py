"""Log output for retry events.

The drivers log through the stdlib `rebound.retry` logger and attach their
fields (operation, attempt, delay, error) as record extras. This module
installs a single handler on the `rebound` logger that renders those
records for humans or log aggregators.

Quick Start:
    >>> from rebound.runtime.observability import configure_logging
    >>> configure_logging(format="console", level="DEBUG")
    >>> configure_logging(format="json")  # JSON Lines for Loki, Datadog, ...
    >>> configure_logging()  # from REBOUND_LOG_FORMAT / REBOUND_LOG_LEVEL
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

import orjson

ROOT_LOGGER = "rebound"

# Fields the drivers attach via `extra=`
EVENT_FIELDS = ("operation", "attempt", "delay", "error")

_handler: logging.Handler | None = None


class ConsoleFormatter(logging.Formatter):
    """Human-readable: `12:30:45.123 [info] rebound.retry: message`."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=UTC).strftime("%H:%M:%S.%f")[:-3]
        line = f"{ts} [{record.levelname.lower()}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """JSON Lines output including the retry event fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        payload.update({k: getattr(record, k) for k in EVENT_FIELDS if hasattr(record, k)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=repr, option=orjson.OPT_NON_STR_KEYS).decode()


def configure_logging(
    format: str | None = None,  # noqa: A002 - matches the setting name
    level: str | None = None,
    *,
    output: TextIO | None = None,
) -> logging.Handler:
    """Install the rebound log handler. Format: "console", "json" or "none".

    Missing arguments fall back to the logging settings. Calling again
    replaces the previously installed handler.
    """
    global _handler
    if format is None or level is None:
        from rebound.foundation.config import get_settings
        settings = get_settings().logging
        format, level = format or settings.format, level or settings.level

    handler: logging.Handler
    match format:
        case "console":
            handler = logging.StreamHandler(output or sys.stderr)
            handler.setFormatter(ConsoleFormatter())
        case "json":
            handler = logging.StreamHandler(output or sys.stdout)
            handler.setFormatter(JsonFormatter())
        case "none":
            handler = logging.NullHandler()
        case _:
            raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")

    if (levelno := logging.getLevelNamesMapping().get(level.upper())) is None:
        raise ValueError(f"Unknown level: {level}. Use DEBUG, INFO, WARNING, ERROR or CRITICAL")

    reset_logging()
    root = logging.getLogger(ROOT_LOGGER)
    root.addHandler(handler)
    root.setLevel(levelno)
    root.propagate = False
    _handler = handler
    return handler


def reset_logging() -> None:
    """Remove the installed handler and hand records back to the root logger."""
    global _handler
    root = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        root.removeHandler(_handler)
        _handler = None
    root.setLevel(logging.NOTSET)
    root.propagate = True
