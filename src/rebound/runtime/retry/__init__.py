"""Retry runtime: backoff sources, decision engine and execution drivers.

Example:
    >>> from rebound.runtime.retry import BlockingRetry, ConstantBuilder
    >>> value = (
    ...     BlockingRetry(fetch, ConstantBuilder(delay=0.5, max_times=4))
    ...     .when(lambda e: isinstance(e, TimeoutError))
    ...     .call()
    ... )
"""

from .backoff import (
    Backoff,
    BackoffBuilder,
    ConstantBuilder,
    ExponentialBuilder,
    FibonacciBuilder,
    LinearBuilder,
    SequenceBuilder,
    default_backoff,
)
from .context import BlockingRetryWithContext, CallContext, ContextAttempt, RetryWithContext
from .core import (
    STOP,
    Continue,
    Decision,
    RetryConfig,
    Stop,
    always_retry,
    identity_adjust,
    noop_notify,
)
from .driver import BlockingRetry, Retry, blocking_retry, retry

__all__ = [
    # Backoff sources
    "Backoff", "BackoffBuilder", "ExponentialBuilder", "ConstantBuilder",
    "FibonacciBuilder", "LinearBuilder", "SequenceBuilder", "default_backoff",
    # Decision engine
    "RetryConfig", "Decision", "Continue", "Stop", "STOP",
    "always_retry", "noop_notify", "identity_adjust",
    # Drivers
    "BlockingRetry", "Retry", "blocking_retry", "retry",
    # Context threading
    "BlockingRetryWithContext", "RetryWithContext", "CallContext", "ContextAttempt",
]
