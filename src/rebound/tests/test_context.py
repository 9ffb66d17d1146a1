"""Tests for context-threaded retries.

Validates:
- Attempt i receives exactly the context returned by attempt i-1
- Final context is handed back with the outcome
- Capability objects with invoke() are accepted
- Malformed attempt results are rejected
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import pytest

from rebound import (
    BlockingRetryWithContext,
    CallContext,
    ConstantBuilder,
    Err,
    Ok,
    Result,
    RetryWithContext,
    SequenceBuilder,
)
from rebound.foundation.testing import RecordingNotifier, RecordingSleeper


class Flaky(Exception):
    """Transient failure."""


@dataclass(frozen=True)
class Counter:
    attempts: int = 0


def _counting_attempt(fail_times: int, seen: list[Counter]):
    def attempt(ctx: Counter) -> tuple[Counter, Result[str, Exception]]:
        seen.append(ctx)
        updated = replace(ctx, attempts=ctx.attempts + 1)
        return updated, Err(Flaky(str(updated.attempts))) if updated.attempts <= fail_times else Ok("done")
    return attempt


# ═════════════════════════════════════════════════════════════════════════════
# Blocking
# ═════════════════════════════════════════════════════════════════════════════


def test_context_round_trip_counter() -> None:
    """3 failures + 1 success: final counter is 4 and each attempt saw its predecessor's context."""
    seen: list[Counter] = []
    sleeper = RecordingSleeper()
    ctx, outcome = (
        BlockingRetryWithContext(_counting_attempt(3, seen), SequenceBuilder([0.01] * 3))
        .sleep(sleeper)
        .context(Counter())
        .call()
    )
    assert outcome == Ok("done")
    assert ctx.attempts == 4
    assert [c.attempts for c in seen] == [0, 1, 2, 3]
    assert sleeper.delays == [0.01] * 3


def test_context_returned_on_stop() -> None:
    seen: list[Counter] = []
    ctx, outcome = (
        BlockingRetryWithContext(_counting_attempt(10, seen), SequenceBuilder([0.0]))
        .sleep(RecordingSleeper())
        .context(Counter())
        .call()
    )
    assert outcome.is_err()
    assert str(outcome.unwrap_err()) == "2"
    assert ctx.attempts == 2


def test_context_predicate_rejection() -> None:
    seen: list[Counter] = []
    sleeper = RecordingSleeper()
    ctx, outcome = (
        BlockingRetryWithContext(_counting_attempt(5, seen), SequenceBuilder([0.01]))
        .sleep(sleeper)
        .when(lambda e: False)
        .context(Counter())
        .call()
    )
    assert outcome.is_err()
    assert ctx.attempts == 1
    sleeper.assert_not_slept()


def test_context_defaults_to_none() -> None:
    seen: list[object] = []

    def attempt(ctx: object) -> tuple[object, Result[int, Exception]]:
        seen.append(ctx)
        return ctx, Ok(1)

    assert BlockingRetryWithContext(attempt, SequenceBuilder([])).call() == (None, Ok(1))
    assert seen == [None]


def test_capability_object_with_invoke() -> None:
    class Upload:
        def __init__(self) -> None:
            self.calls = 0

        def invoke(self, offset: int) -> tuple[int, Result[int, Exception]]:
            self.calls += 1
            if offset < 20:
                return offset + 10, Err(Flaky(f"partial at {offset}"))
            return offset, Ok(offset)

    upload = Upload()
    notifier = RecordingNotifier()
    offset, outcome = (
        BlockingRetryWithContext(upload, ConstantBuilder(delay=0.0, max_times=5))
        .sleep(RecordingSleeper())
        .notify(notifier)
        .context(0)
        .call()
    )
    assert (offset, outcome) == (20, Ok(20))
    assert upload.calls == 3
    assert notifier.call_count == 2


def test_malformed_attempt_result_raises_type_error() -> None:
    with pytest.raises(TypeError, match="must return"):
        BlockingRetryWithContext(lambda ctx: "oops", SequenceBuilder([])).call()


def test_non_result_outcome_raises_type_error() -> None:
    with pytest.raises(TypeError):
        BlockingRetryWithContext(lambda ctx: (ctx, "value"), SequenceBuilder([])).call()


# ═════════════════════════════════════════════════════════════════════════════
# Suspending
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_async_context_round_trip() -> None:
    seen: list[Counter] = []
    sync_attempt = _counting_attempt(3, seen)

    async def attempt(ctx: Counter) -> tuple[Counter, Result[str, Exception]]:
        return sync_attempt(ctx)

    sleeper = RecordingSleeper()
    ctx, outcome = await (
        RetryWithContext(attempt, SequenceBuilder([0.01] * 3))
        .sleep(sleeper.asleep)
        .context(Counter())
    )
    assert outcome == Ok("done")
    assert ctx.attempts == 4
    assert [c.attempts for c in seen] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_async_context_adjust_stops() -> None:
    seen: list[Counter] = []
    sync_attempt = _counting_attempt(3, seen)

    async def attempt(ctx: Counter) -> tuple[Counter, Result[str, Exception]]:
        return sync_attempt(ctx)

    ctx, outcome = await (
        RetryWithContext(attempt, SequenceBuilder([0.01] * 3))
        .sleep(RecordingSleeper().asleep)
        .adjust(lambda e, d: None if str(e) == "2" else d)
        .context(Counter())
        .run()
    )
    assert outcome.is_err()
    assert ctx.attempts == 2


# ═════════════════════════════════════════════════════════════════════════════
# CallContext
# ═════════════════════════════════════════════════════════════════════════════


def test_call_context_updates_share_receiver() -> None:
    owner = object()
    ctx = CallContext({"key": "a", "retries": 0}, owner, "self")
    updated = ctx.with_arguments(retries=1)
    assert updated["retries"] == 1
    assert ctx["retries"] == 0
    assert updated.receiver is owner


def test_call_context_rejects_unknown_arguments() -> None:
    with pytest.raises(KeyError):
        CallContext({"key": "a"}).with_arguments(other=1)


def test_call_context_arguments_are_read_only() -> None:
    ctx = CallContext({"key": "a"})
    with pytest.raises(TypeError):
        ctx.arguments["key"] = "b"  # type: ignore[index]
