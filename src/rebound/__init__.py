"""Rebound - retry fallible operations with pluggable backoff.

Wraps a blocking callable or a coroutine function so that failures are
retried under a backoff schedule, a retryable predicate, a delay-adjust
hook and a notification callback.

Quick Start (Decorator):
    >>> from rebound import retryable, ExponentialBuilder
    >>>
    >>> @retryable(backoff=ExponentialBuilder(min_delay=0.2, max_times=5), when=is_transient)
    ... async def fetch(url: str) -> bytes:
    ...     return await client.get(url)

Builders (No Decorator):
    >>> from rebound import BlockingRetry, Retry, ConstantBuilder
    >>>
    >>> value = BlockingRetry(read_config).when(lambda e: isinstance(e, OSError)).call()
    >>> value = await Retry(fetch_async, ConstantBuilder(delay=1.0)).adjust(honor_retry_after)

Context Threading:
    >>> from rebound import BlockingRetryWithContext, Ok, Err
    >>>
    >>> def attempt(offset: int):
    ...     try:
    ...         return offset, Ok(upload_from(offset))
    ...     except PartialUpload as e:
    ...         return e.offset, Err(e)
    >>> offset, result = BlockingRetryWithContext(attempt).context(0).call()
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors & outcomes
from .foundation.errors import ConfigCode, ConfigurationError, Err, Ok, ReboundError, Result, capture

# Configuration
from .foundation.config import BackoffSettings, LoggingSettings, ReboundSettings, clear_settings_cache, get_settings

# Wrapping
from .foundation.core import CallingConvention, ReceiverKind, RetryOptions, Shape, retryable, select_convention, wrap

# Runtime
from .runtime.retry import (
    STOP,
    Backoff,
    BackoffBuilder,
    BlockingRetry,
    BlockingRetryWithContext,
    CallContext,
    ConstantBuilder,
    ContextAttempt,
    Continue,
    Decision,
    ExponentialBuilder,
    FibonacciBuilder,
    LinearBuilder,
    Retry,
    RetryConfig,
    RetryWithContext,
    SequenceBuilder,
    Stop,
    blocking_retry,
    default_backoff,
    retry,
)

# Observability
from .runtime.observability import configure_logging, reset_logging

__all__ = [
    "__version__",
    # Errors & outcomes
    "ConfigCode", "ConfigurationError", "ReboundError", "Result", "Ok", "Err", "capture",
    # Configuration
    "BackoffSettings", "LoggingSettings", "ReboundSettings", "get_settings", "clear_settings_cache",
    # Wrapping
    "retryable", "wrap", "CallingConvention", "ReceiverKind", "RetryOptions", "Shape", "select_convention",
    # Backoff
    "Backoff", "BackoffBuilder", "ExponentialBuilder", "ConstantBuilder", "FibonacciBuilder",
    "LinearBuilder", "SequenceBuilder", "default_backoff",
    # Decision engine
    "RetryConfig", "Decision", "Continue", "Stop", "STOP",
    # Drivers
    "BlockingRetry", "Retry", "blocking_retry", "retry",
    "BlockingRetryWithContext", "RetryWithContext", "CallContext", "ContextAttempt",
    # Observability
    "configure_logging", "reset_logging",
]
