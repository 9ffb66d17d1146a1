"""Observability for retry sessions: log handler setup for rebound's loggers."""

from .logging import ConsoleFormatter, JsonFormatter, configure_logging, reset_logging

__all__ = ["ConsoleFormatter", "JsonFormatter", "configure_logging", "reset_logging"]
