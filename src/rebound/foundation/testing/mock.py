"""Test doubles for retry sessions.

- ScriptedOperation: plays back a fixed script of failures and successes
- RecordingSleeper: records requested delays instead of sleeping
- RecordingNotifier: records (error, delay) notifications

Example:
    >>> op = ScriptedOperation([TimeoutError(), TimeoutError(), "done"])
    >>> sleeper = RecordingSleeper()
    >>> BlockingRetry(op, SequenceBuilder([0.01, 0.01])).sleep(sleeper).call()
    'done'
    >>> op.call_count, sleeper.delays
    (3, [0.01, 0.01])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class Invocation:
    """Record of a single attempt."""
    index: int
    outcome: Any
    raised: bool


@dataclass
class ScriptedOperation:
    """Operation whose n-th call returns or raises the n-th script entry.

    Exception instances and classes in the script are raised, anything else
    is returned. Once the script runs out, the last entry repeats.
    """
    script: list[Any]
    invocations: list[Invocation] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.script:
            raise ValueError("script must not be empty")

    @property
    def call_count(self) -> int:
        return len(self.invocations)

    @property
    def called(self) -> bool:
        return self.call_count > 0

    def _next(self) -> Any:
        index = self.call_count
        entry = self.script[min(index, len(self.script) - 1)]
        exc = entry() if isinstance(entry, type) and issubclass(entry, BaseException) else entry
        raised = isinstance(exc, BaseException)
        self.invocations.append(Invocation(index=index, outcome=exc, raised=raised))
        if raised:
            raise exc
        return entry

    def __call__(self) -> Any:
        return self._next()

    async def acall(self) -> Any:
        """Async form for suspending drivers."""
        return self._next()

    def assert_called_times(self, expected: int) -> None:
        if self.call_count != expected:
            raise AssertionError(f"Expected {expected} attempt(s), got {self.call_count}")


@dataclass
class RecordingSleeper:
    """Sleep replacement that only records delays."""
    delays: list[float] = field(default_factory=list)

    def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    async def asleep(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)

    def assert_not_slept(self) -> None:
        if self.delays:
            raise AssertionError(f"Expected no sleep, got {self.delays}")


@dataclass
class RecordingNotifier:
    """notify hook that records (error, delay) pairs."""
    calls: list[tuple[Any, float]] = field(default_factory=list)

    def __call__(self, err: Any, delay: float) -> None:
        self.calls.append((err, delay))

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def errors(self) -> list[Any]:
        return [e for e, _ in self.calls]

    @property
    def delays(self) -> list[float]:
        return [d for _, d in self.calls]
