"""Backoff sources for retry sessions.

A backoff source is a plain iterator of delays (seconds). Exhaustion is the
iterator's end and is permanent for that source. A builder produces a fresh
source for every retry session:

- ExponentialBuilder: Exponential growth with cap and optional jitter
- ConstantBuilder: Fixed delay
- FibonacciBuilder: Fibonacci growth with cap
- LinearBuilder: Linear growth with cap
- SequenceBuilder: Exactly the delays given
"""

from __future__ import annotations

import random
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rebound.foundation.config import BackoffSettings

Backoff = Iterator[float]


@runtime_checkable
class BackoffBuilder(Protocol):
    """Protocol for backoff factories.

    Each call to build() must return an independent source, so two retry
    sessions never share delay state.
    """

    def build(self) -> Backoff: ...


def _check_times(max_times: int | None) -> None:
    if max_times is not None and max_times < 0:
        raise ValueError(f"max_times must be >= 0, got {max_times}")


def _jittered(delay: float, jitter: bool) -> float:
    return delay + delay * random.random() if jitter else delay


@dataclass(frozen=True, slots=True)
class ExponentialBuilder:
    """Exponential backoff with cap.

    Delay n (0-indexed) = min(min_delay * factor^n, max_delay), plus up to
    100% random jitter when enabled.

    Attributes:
        factor: Growth factor, at least 1 (default: 2.0)
        min_delay: First delay in seconds (default: 1.0)
        max_delay: Cap applied before jitter (default: 60.0)
        max_times: Delays before exhaustion, None for unbounded (default: 3)
        jitter: Randomize delays (default: False)
        total_delay: Stop once cumulative delay would exceed this (default: None)
    """

    factor: float = 2.0
    min_delay: float = 1.0
    max_delay: float = 60.0
    max_times: int | None = 3
    jitter: bool = False
    total_delay: float | None = None

    def __post_init__(self) -> None:
        if self.factor < 1.0:
            raise ValueError(f"factor must be >= 1, got {self.factor}")
        if self.min_delay < 0 or self.max_delay < self.min_delay:
            raise ValueError(f"invalid delay bounds: min={self.min_delay}, max={self.max_delay}")
        _check_times(self.max_times)

    @classmethod
    def from_settings(cls, settings: BackoffSettings) -> ExponentialBuilder:
        return cls(
            factor=settings.factor, min_delay=settings.min_delay, max_delay=settings.max_delay,
            max_times=settings.max_times, jitter=settings.jitter,
        )

    def build(self) -> Backoff:
        current, spent, count = self.min_delay, 0.0, 0
        while self.max_times is None or count < self.max_times:
            delay = _jittered(current, self.jitter)
            if self.total_delay is not None and spent + delay > self.total_delay:
                return
            yield delay
            spent += delay
            count += 1
            current = min(current * self.factor, self.max_delay)


@dataclass(frozen=True, slots=True)
class ConstantBuilder:
    """Fixed delay between retries.

    Attributes:
        delay: Delay in seconds (default: 1.0)
        max_times: Delays before exhaustion, None for unbounded (default: 3)
        jitter: Randomize delays (default: False)
    """

    delay: float = 1.0
    max_times: int | None = 3
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        _check_times(self.max_times)

    def build(self) -> Backoff:
        count = 0
        while self.max_times is None or count < self.max_times:
            yield _jittered(self.delay, self.jitter)
            count += 1


@dataclass(frozen=True, slots=True)
class FibonacciBuilder:
    """Fibonacci backoff with cap: min, min, 2*min, 3*min, 5*min, ..."""

    min_delay: float = 1.0
    max_delay: float = 60.0
    max_times: int | None = 3
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.min_delay < 0 or self.max_delay < self.min_delay:
            raise ValueError(f"invalid delay bounds: min={self.min_delay}, max={self.max_delay}")
        _check_times(self.max_times)

    def build(self) -> Backoff:
        prev, current, count = 0.0, self.min_delay, 0
        while self.max_times is None or count < self.max_times:
            yield _jittered(current, self.jitter)
            count += 1
            prev, current = current, min(prev + current, self.max_delay)


@dataclass(frozen=True, slots=True)
class LinearBuilder:
    """Linear backoff with cap.

    Delay n (0-indexed) = min(base + increment * n, max_delay)
    """

    base: float = 1.0
    increment: float = 1.0
    max_delay: float = 60.0
    max_times: int | None = 3

    def __post_init__(self) -> None:
        if self.base < 0 or self.increment < 0:
            raise ValueError("base and increment must be >= 0")
        _check_times(self.max_times)

    def build(self) -> Backoff:
        count = 0
        while self.max_times is None or count < self.max_times:
            yield min(self.base + self.increment * count, self.max_delay)
            count += 1


@dataclass(frozen=True, slots=True)
class SequenceBuilder:
    """Yields exactly the given delays, then exhausts.

    Handy for known cooldown schedules and for tests.
    """

    delays: tuple[float, ...]

    def __post_init__(self) -> None:
        values = tuple(float(d) for d in self.delays)
        if any(d < 0 for d in values):
            raise ValueError("delays must be >= 0")
        object.__setattr__(self, "delays", values)

    def build(self) -> Backoff:
        return iter(self.delays)


def default_backoff() -> ExponentialBuilder:
    """Standard exponential backoff configured from settings."""
    from rebound.foundation.config import get_settings
    return ExponentialBuilder.from_settings(get_settings().backoff)
