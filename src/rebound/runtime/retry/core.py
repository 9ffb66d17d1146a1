"""Retry decision engine shared by every execution driver.

Given an attempt's error, RetryConfig combines the retryable predicate, the
backoff source and the adjust hook into a verdict:

    retryable(err) false        -> Stop (backoff untouched)
    adjust(err, next delay)     -> None  -> Stop
                                -> delay -> notify(err, delay); Continue(delay)

Hooks are caller-supplied and assumed total. Anything they raise aborts the
session and propagates unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from .backoff import Backoff

E = TypeVar("E")

Sleeper = Callable[[float], Any]
Predicate = Callable[[E], bool]
Notifier = Callable[[E, float], Any]
Adjuster = Callable[[E, float | None], float | None]


def always_retry(_: object) -> bool:
    return True


def noop_notify(_: object, __: float) -> None:
    pass


def identity_adjust(_: object, delay: float | None) -> float | None:
    return delay


@dataclass(frozen=True, slots=True)
class Continue:
    """Retry after sleeping `delay` seconds."""
    delay: float


@dataclass(frozen=True, slots=True)
class Stop:
    """Terminal verdict: surface the last error."""


Decision = Continue | Stop
STOP = Stop()


@dataclass(slots=True)
class RetryConfig(Generic[E]):
    """Per-session retry state: one backoff source and four hooks.

    Built by a driver at the start of each call and dropped when the call
    ends, so nothing here is ever shared between sessions.
    """

    backoff: Backoff
    sleep: Sleeper
    retryable: Predicate[E] = always_retry
    notify: Notifier[E] = noop_notify
    adjust: Adjuster[E] = identity_adjust
    _exhausted: bool = field(default=False, repr=False)

    def next_delay(self) -> float | None:
        """Pull the next candidate delay; None forever once exhausted."""
        if self._exhausted:
            return None
        if (delay := next(self.backoff, None)) is None:
            self._exhausted = True
        return delay

    def decide(self, err: E) -> Decision:
        if not self.retryable(err):
            return STOP
        match self.adjust(err, self.next_delay()):
            case None:
                return STOP
            case delay:
                self.notify(err, delay)
                return Continue(delay)
