"""Operation shapes and calling-convention selection.

The decorator never rewrites code. It inspects the target once, at
definition time, and maps its shape onto exactly one of four drivers:

    async?  context?  ->  convention
    no      no            BLOCKING_SIMPLE     (BlockingRetry)
    no      yes           BLOCKING_CONTEXT    (BlockingRetryWithContext)
    yes     no            SUSPENDING_SIMPLE   (Retry)
    yes     yes           SUSPENDING_CONTEXT  (RetryWithContext)

Invalid combinations are rejected here, before the function is ever called.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, field_validator

from rebound.foundation.errors import ConfigCode, ConfigurationError
from rebound.runtime.retry import BackoffBuilder, CallContext, default_backoff

# Conventional names for a method's first parameter
RECEIVER_NAMES = frozenset({"self", "cls"})


class ReceiverKind(StrEnum):
    """How a method uses its receiver across attempts.

    SHARED receivers are only read through the reference (or through their
    own synchronized handles). EXCLUSIVE receivers are mutated in place and
    OWNED receivers are consumed; neither may be threaded through a context.
    """
    NONE = "none"
    SHARED = "shared"
    EXCLUSIVE = "exclusive"
    OWNED = "owned"


class CallingConvention(StrEnum):
    BLOCKING_SIMPLE = "blocking/simple"
    BLOCKING_CONTEXT = "blocking/context"
    SUSPENDING_SIMPLE = "suspending/simple"
    SUSPENDING_CONTEXT = "suspending/context"

    @property
    def is_async(self) -> bool:
        return self.value.startswith("suspending")

    @property
    def uses_context(self) -> bool:
        return self.value.endswith("context")


_VARIADIC = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(frozen=True, slots=True)
class Shape:
    """What the wrapping layer needs to know about a function."""

    name: str
    is_async: bool
    receiver: ReceiverKind
    signature: inspect.Signature

    @classmethod
    def of(cls, fn: object, receiver: ReceiverKind | str | None = None) -> Shape:
        """Inspect fn. A first parameter named self/cls marks a receiver (SHARED unless declared)."""
        name = getattr(fn, "__qualname__", None) or repr(fn)
        if isinstance(fn, (staticmethod, classmethod)):
            raise ConfigurationError(
                "apply @retryable below @staticmethod/@classmethod", ConfigCode.UNSUPPORTED_TARGET, target=name,
            )
        if not (inspect.isfunction(fn) or inspect.ismethod(fn)):
            raise ConfigurationError(
                f"@retryable may only be applied to functions or methods, got {type(fn).__name__}",
                ConfigCode.UNSUPPORTED_TARGET, target=name,
            )
        if inspect.isasyncgenfunction(fn) or inspect.isgeneratorfunction(fn):
            raise ConfigurationError(
                "generator functions have no single outcome to retry", ConfigCode.UNSUPPORTED_TARGET, target=name,
            )

        signature = inspect.signature(fn)
        params = list(signature.parameters.values())
        has_receiver = (
            not inspect.ismethod(fn)
            and bool(params)
            and params[0].name in RECEIVER_NAMES
            and params[0].kind not in _VARIADIC
        )

        if not has_receiver:
            if receiver not in (None, ReceiverKind.NONE):
                raise ConfigurationError(
                    f"receiver={str(receiver)!r} declared but the function takes no self/cls",
                    ConfigCode.INVALID_OPTION, target=name,
                )
            kind = ReceiverKind.NONE
        else:
            kind = ReceiverKind(receiver) if receiver not in (None, ReceiverKind.NONE) else ReceiverKind.SHARED

        return cls(name, inspect.iscoroutinefunction(fn), kind, signature)

    @property
    def receiver_name(self) -> str | None:
        return next(iter(self.signature.parameters)) if self.receiver is not ReceiverKind.NONE else None

    @property
    def variadic(self) -> tuple[str, ...]:
        """Parameters that collect several values (*args, **kwargs)."""
        return tuple(p.name for p in self.signature.parameters.values() if p.kind in _VARIADIC)

    def initial_context(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> CallContext:
        """Bind one call's arguments into the context for its first attempt."""
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        arguments = dict(bound.arguments)
        if (receiver_name := self.receiver_name) is None:
            return CallContext(arguments)
        return CallContext(arguments, arguments.pop(receiver_name), receiver_name)


class RetryOptions(BaseModel):
    """Options accepted by @retryable.

    Attributes:
        backoff: BackoffBuilder, or a zero-argument factory returning one
        sleep: Sleep function (blocking or async to match the function)
        when: Retryable predicate, error -> bool
        notify: Callback (error, delay) before each sleep
        adjust: Delay override (error, delay | None) -> delay | None; async only
        context: Thread call arguments through a context between attempts
        receiver: How a method uses self; see ReceiverKind
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    backoff: Any = None
    sleep: Callable[..., Any] | None = None
    when: Callable[..., Any] | None = None
    notify: Callable[..., Any] | None = None
    adjust: Callable[..., Any] | None = None
    context: bool = False
    receiver: ReceiverKind | None = None

    @field_validator("backoff")
    @classmethod
    def _check_backoff(cls, v: object) -> object:
        if v is None or callable(v) or isinstance(v, BackoffBuilder):
            return v
        raise ValueError("expected a BackoffBuilder or a zero-argument factory returning one")

    def make_backoff(self) -> BackoffBuilder:
        """Resolve the builder for one call (factories run once per call)."""
        if self.backoff is None:
            return default_backoff()
        if isinstance(self.backoff, BackoffBuilder) and not isinstance(self.backoff, type):
            return self.backoff
        if not isinstance(builder := self.backoff(), BackoffBuilder):
            raise TypeError(f"backoff factory returned {type(builder).__name__}, not a BackoffBuilder")
        return builder


def _is_async_callable(fn: object) -> bool:
    """Coroutine functions, including objects with an async __call__."""
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(getattr(fn, "__call__", None))


def select_convention(shape: Shape, options: RetryOptions) -> CallingConvention:
    """Pick the driver for shape, rejecting unsupported combinations."""
    if options.adjust is not None and not shape.is_async:
        raise ConfigurationError(
            "`adjust` is only available for async functions", ConfigCode.ADJUST_REQUIRES_ASYNC, target=shape.name,
        )

    for hook in ("when", "notify", "adjust"):
        if _is_async_callable(getattr(options, hook)):
            raise ConfigurationError(
                f"`{hook}` must be a plain function; the driver calls it without awaiting",
                ConfigCode.INVALID_OPTION, target=shape.name,
            )
    if options.sleep is not None and _is_async_callable(options.sleep) != shape.is_async:
        expected = "an async" if shape.is_async else "a blocking"
        raise ConfigurationError(
            f"`sleep` must be {expected} function to match the decorated function",
            ConfigCode.INVALID_OPTION, target=shape.name,
        )

    if options.context:
        match shape.receiver:
            case ReceiverKind.EXCLUSIVE:
                raise ConfigurationError(
                    "`context=True` is not supported for methods that mutate their receiver; "
                    "guard the shared state with a lock and use receiver='shared'",
                    ConfigCode.EXCLUSIVE_RECEIVER_CONTEXT, target=shape.name,
                )
            case ReceiverKind.OWNED:
                raise ConfigurationError(
                    "`context=True` does not support methods that take ownership of their receiver",
                    ConfigCode.OWNED_RECEIVER_CONTEXT, target=shape.name,
                )
        if variadic := shape.variadic:
            raise ConfigurationError(
                f"`context=True` requires parameters to bind to named identifiers; got {', '.join(variadic)}",
                ConfigCode.NON_IDENTIFIER_PARAMETER, target=shape.name,
            )

    match (shape.is_async, options.context):
        case (False, False):
            return CallingConvention.BLOCKING_SIMPLE
        case (False, True):
            return CallingConvention.BLOCKING_CONTEXT
        case (True, False):
            return CallingConvention.SUSPENDING_SIMPLE
        case _:
            return CallingConvention.SUSPENDING_CONTEXT
