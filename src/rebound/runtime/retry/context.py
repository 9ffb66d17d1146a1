"""Context-threaded retries.

Some operations need state that survives across attempts: their arguments,
a receiver, a counter. Instead of closing over that state, each attempt takes
the context as input and hands it back alongside its outcome:

    attempt(ctx) -> (ctx', Ok(value) | Err(error))

The driver owns the context only between attempts. Attempt i receives
exactly the context returned by attempt i-1, and because attempts never
overlap the context is never observed by two attempts at once.

Example:
    >>> def upload(ctx: Chunk) -> tuple[Chunk, Result[str, IOError]]:
    ...     try:
    ...         return ctx, Ok(client.put(ctx.data, offset=ctx.offset))
    ...     except PartialWrite as e:
    ...         return ctx.advance(e.written), Err(e)
    >>> ctx, result = BlockingRetryWithContext(upload).context(Chunk(data)).call()
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Generic, Protocol, TypeVar, runtime_checkable

from rebound.foundation.errors import Result

from .backoff import BackoffBuilder, default_backoff
from .core import Adjuster, Continue, Notifier, Predicate, RetryConfig, Stop, always_retry, identity_adjust, noop_notify
from .driver import describe, log_retry, log_stop

if TYPE_CHECKING:
    from collections.abc import Awaitable, Generator

C = TypeVar("C")
T = TypeVar("T")
E = TypeVar("E")


@runtime_checkable
class ContextAttempt(Protocol[C, T, E]):
    """Capability object for one repeatable attempt.

    Any object exposing invoke() can be retried with context threading, as
    can a plain callable with the same signature.
    """

    def invoke(self, ctx: C) -> tuple[C, Result[T, E]]: ...


@dataclass(frozen=True, slots=True)
class CallContext:
    """Arguments of one wrapped call plus an optional receiver reference.

    The receiver is referenced, never replaced: updates produce a new context
    that points at the same receiver object.
    """

    arguments: Mapping[str, Any] = field(default_factory=dict)
    receiver: Any = None
    receiver_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))

    def __getitem__(self, name: str) -> Any:
        return self.arguments[name]

    def with_arguments(self, **updates: Any) -> CallContext:
        unknown = updates.keys() - self.arguments.keys()
        if unknown:
            raise KeyError(f"unknown argument(s): {', '.join(sorted(unknown))}")
        return CallContext({**self.arguments, **updates}, self.receiver, self.receiver_name)

    def bound(self, signature: inspect.Signature) -> inspect.BoundArguments:
        """Rebuild call arguments, receiver first when there is one."""
        arguments = dict(self.arguments)
        if self.receiver_name is not None:
            arguments = {self.receiver_name: self.receiver, **arguments}
        return inspect.BoundArguments(signature, arguments)


def _as_callable(attempt: Any) -> Callable[[Any], Any]:
    return attempt.invoke if isinstance(attempt, ContextAttempt) else attempt


def _unpack(pair: object, name: str) -> tuple[Any, Result[Any, Any]]:
    match pair:
        case (ctx, Result() as outcome):
            return ctx, outcome
        case _:
            raise TypeError(f"[{name}] context attempt must return (context, Result), got {type(pair).__name__}")


@dataclass(frozen=True, slots=True)
class BlockingRetryWithContext(Generic[C, T, E]):
    """Retry a blocking context attempt.

    call() returns (final_context, outcome). The outcome is the first Ok, or
    the Err of the attempt on which retrying stopped.
    """

    attempt: Callable[[C], tuple[C, Result[T, E]]] | ContextAttempt[C, T, E]
    backoff: BackoffBuilder = field(default_factory=default_backoff)
    sleep_fn: Callable[[float], Any] = time.sleep
    when_fn: Predicate[E] = always_retry
    notify_fn: Notifier[E] = noop_notify
    initial: C | None = None

    def context(self, ctx: C) -> BlockingRetryWithContext[C, T, E]:
        """Set the initial context handed to the first attempt."""
        return replace(self, initial=ctx)

    def sleep(self, fn: Callable[[float], Any]) -> BlockingRetryWithContext[C, T, E]:
        return replace(self, sleep_fn=fn)

    def when(self, predicate: Predicate[E]) -> BlockingRetryWithContext[C, T, E]:
        return replace(self, when_fn=predicate)

    def notify(self, fn: Notifier[E]) -> BlockingRetryWithContext[C, T, E]:
        return replace(self, notify_fn=fn)

    def call(self) -> tuple[C, Result[T, E]]:
        config = RetryConfig(self.backoff.build(), self.sleep_fn, self.when_fn, self.notify_fn)
        invoke, name = _as_callable(self.attempt), describe(self.attempt)
        ctx, attempt = self.initial, 0
        while True:
            attempt += 1
            ctx, outcome = _unpack(invoke(ctx), name)
            if outcome.is_ok():
                return ctx, outcome
            err = outcome.unwrap_err()
            match config.decide(err):
                case Continue(delay=delay):
                    log_retry(name, attempt, err, delay)
                    config.sleep(delay)
                case Stop():
                    log_stop(name, attempt, err)
                    return ctx, outcome

    __call__ = call


@dataclass(frozen=True, slots=True)
class RetryWithContext(Generic[C, T, E]):
    """Retry an async context attempt; await it for (final_context, outcome)."""

    attempt: Callable[[C], Awaitable[tuple[C, Result[T, E]]]] | ContextAttempt[C, T, E]
    backoff: BackoffBuilder = field(default_factory=default_backoff)
    sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep
    when_fn: Predicate[E] = always_retry
    notify_fn: Notifier[E] = noop_notify
    adjust_fn: Adjuster[E] = identity_adjust
    initial: C | None = None

    def context(self, ctx: C) -> RetryWithContext[C, T, E]:
        return replace(self, initial=ctx)

    def sleep(self, fn: Callable[[float], Awaitable[Any]]) -> RetryWithContext[C, T, E]:
        return replace(self, sleep_fn=fn)

    def when(self, predicate: Predicate[E]) -> RetryWithContext[C, T, E]:
        return replace(self, when_fn=predicate)

    def notify(self, fn: Notifier[E]) -> RetryWithContext[C, T, E]:
        return replace(self, notify_fn=fn)

    def adjust(self, fn: Adjuster[E]) -> RetryWithContext[C, T, E]:
        return replace(self, adjust_fn=fn)

    async def run(self) -> tuple[C, Result[T, E]]:
        config = RetryConfig(self.backoff.build(), self.sleep_fn, self.when_fn, self.notify_fn, self.adjust_fn)
        invoke, name = _as_callable(self.attempt), describe(self.attempt)
        ctx, attempt = self.initial, 0
        while True:
            attempt += 1
            ctx, outcome = _unpack(await invoke(ctx), name)
            if outcome.is_ok():
                return ctx, outcome
            err = outcome.unwrap_err()
            match config.decide(err):
                case Continue(delay=delay):
                    log_retry(name, attempt, err, delay)
                    await config.sleep(delay)
                case Stop():
                    log_stop(name, attempt, err)
                    return ctx, outcome

    def __await__(self) -> Generator[Any, None, tuple[C, Result[T, E]]]:
        return self.run().__await__()
