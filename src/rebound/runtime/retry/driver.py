"""Blocking and suspending retry drivers.

Both drivers run the same loop:

    Ready -> Attempting -> Succeeded            (value returned)
                       -> Failed                (decide() == Stop, error re-raised)
                       -> Sleeping -> Attempting (decide() == Continue(delay))

Attempts are strictly sequential and there is no attempt cap: termination
comes from the predicate, backoff exhaustion, or adjust returning None.

Example:
    >>> value = BlockingRetry(fetch).when(is_transient).notify(log_retry).call()
    >>> value = await Retry(fetch_async, ExponentialBuilder(max_times=5)).adjust(honor_retry_after)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from .backoff import BackoffBuilder, default_backoff
from .core import Adjuster, Continue, Notifier, Predicate, RetryConfig, Stop, always_retry, identity_adjust, noop_notify

if TYPE_CHECKING:
    from collections.abc import Awaitable, Generator

logger = logging.getLogger("rebound.retry")

T = TypeVar("T")


def describe(operation: object) -> str:
    """Readable operation name for log lines."""
    target = getattr(operation, "func", operation)  # unwrap functools.partial
    return getattr(target, "__qualname__", None) or type(target).__name__


def log_retry(name: str, attempt: int, err: object, delay: float) -> None:
    logger.info(
        f"[{name}] Attempt {attempt} failed ({type(err).__name__}: {err}). Retrying in {delay:.3f}s",
        extra={"operation": name, "attempt": attempt, "delay": delay, "error": repr(err)},
    )


def log_stop(name: str, attempt: int, err: object) -> None:
    logger.debug(
        f"[{name}] Giving up after {attempt} attempt(s) ({type(err).__name__}: {err})",
        extra={"operation": name, "attempt": attempt, "error": repr(err)},
    )


@dataclass(frozen=True, slots=True)
class BlockingRetry(Generic[T]):
    """Retry a blocking callable.

    Builder methods return a new instance; the original is left untouched.
    Each call() is an independent session with a fresh backoff source.

    Attributes:
        operation: Zero-argument callable; raising an Exception is a failed attempt
        backoff: Builder for the delay schedule (default: settings-driven exponential)
    """

    operation: Callable[[], T]
    backoff: BackoffBuilder = field(default_factory=default_backoff)
    sleep_fn: Callable[[float], Any] = time.sleep
    when_fn: Predicate[Exception] = always_retry
    notify_fn: Notifier[Exception] = noop_notify

    def sleep(self, fn: Callable[[float], Any]) -> BlockingRetry[T]:
        return replace(self, sleep_fn=fn)

    def when(self, predicate: Predicate[Exception]) -> BlockingRetry[T]:
        """Only retry errors for which predicate returns True."""
        return replace(self, when_fn=predicate)

    def notify(self, fn: Notifier[Exception]) -> BlockingRetry[T]:
        """Call fn(error, delay) before each sleep."""
        return replace(self, notify_fn=fn)

    def call(self) -> T:
        """Run the session; return the first success or re-raise the last error."""
        config = RetryConfig(self.backoff.build(), self.sleep_fn, self.when_fn, self.notify_fn)
        name = describe(self.operation)
        attempt = 0
        while True:
            attempt += 1
            try:
                return self.operation()
            except Exception as e:
                match config.decide(e):
                    case Continue(delay=delay):
                        log_retry(name, attempt, e, delay)
                    case Stop():
                        log_stop(name, attempt, e)
                        raise
            config.sleep(delay)

    __call__ = call


@dataclass(frozen=True, slots=True)
class Retry(Generic[T]):
    """Retry a coroutine function.

    Await the instance (or run()) to execute a session. The only suspension
    points are the operation's own awaits and the inter-attempt sleep;
    cancelling the surrounding task aborts the loop at whichever is current.

    Attributes:
        operation: Zero-argument coroutine function
        backoff: Builder for the delay schedule (default: settings-driven exponential)
    """

    operation: Callable[[], Awaitable[T]]
    backoff: BackoffBuilder = field(default_factory=default_backoff)
    sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep
    when_fn: Predicate[Exception] = always_retry
    notify_fn: Notifier[Exception] = noop_notify
    adjust_fn: Adjuster[Exception] = identity_adjust

    def sleep(self, fn: Callable[[float], Awaitable[Any]]) -> Retry[T]:
        return replace(self, sleep_fn=fn)

    def when(self, predicate: Predicate[Exception]) -> Retry[T]:
        """Only retry errors for which predicate returns True."""
        return replace(self, when_fn=predicate)

    def notify(self, fn: Notifier[Exception]) -> Retry[T]:
        """Call fn(error, delay) before each sleep."""
        return replace(self, notify_fn=fn)

    def adjust(self, fn: Adjuster[Exception]) -> Retry[T]:
        """Override the candidate delay per error; returning None stops retrying.

        Example:
            >>> def honor_retry_after(err, delay):
            ...     return getattr(err, "retry_after", delay)
        """
        return replace(self, adjust_fn=fn)

    async def run(self) -> T:
        config = RetryConfig(self.backoff.build(), self.sleep_fn, self.when_fn, self.notify_fn, self.adjust_fn)
        name = describe(self.operation)
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self.operation()
            except Exception as e:
                match config.decide(e):
                    case Continue(delay=delay):
                        log_retry(name, attempt, e, delay)
                    case Stop():
                        log_stop(name, attempt, e)
                        raise
            await config.sleep(delay)

    def __await__(self) -> Generator[Any, None, T]:
        return self.run().__await__()


def blocking_retry(operation: Callable[[], T], backoff: BackoffBuilder | None = None) -> BlockingRetry[T]:
    """Start a blocking retry builder for operation."""
    return BlockingRetry(operation, backoff or default_backoff())


def retry(operation: Callable[[], Awaitable[T]], backoff: BackoffBuilder | None = None) -> Retry[T]:
    """Start a suspending retry builder for operation."""
    return Retry(operation, backoff or default_backoff())
