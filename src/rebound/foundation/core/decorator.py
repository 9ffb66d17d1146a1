"""Decorator that retries a function or method on failure.

Example:
    >>> @retryable(backoff=ExponentialBuilder(max_times=5), when=is_transient, notify=log_retry)
    ... async def fetch(url: str) -> bytes:
    ...     return await client.get(url)

    >>> class Store:
    ...     @retryable(when=lambda e: isinstance(e, Busy))
    ...     def put(self, key: str, value: bytes) -> None:
    ...         self._backend.put(key, value)

    >>> @retryable(context=True)
    ... def send(message: Message) -> Receipt:
    ...     return transport.send(message)

Options are validated when the decorator is applied. Mistakes such as
`adjust` on a plain function raise ConfigurationError at import time, not
when the function is first called.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar, overload

from pydantic import ValidationError

from rebound.foundation.errors import ConfigurationError, Err, Ok, Result, capture
from rebound.runtime.retry import BlockingRetry, BlockingRetryWithContext, CallContext, Retry, RetryWithContext

from .shape import CallingConvention, RetryOptions, Shape, select_convention

if TYPE_CHECKING:
    from rebound.runtime.retry import BackoffBuilder

logger = logging.getLogger("rebound.wrap")

F = TypeVar("F", bound=Callable[..., Any])
D = TypeVar("D")


def _configure(driver: D, options: RetryOptions) -> D:
    """Apply the hooks that were given; drivers keep their defaults otherwise."""
    if options.sleep is not None:
        driver = driver.sleep(options.sleep)  # type: ignore[attr-defined]
    if options.when is not None:
        driver = driver.when(options.when)  # type: ignore[attr-defined]
    if options.notify is not None:
        driver = driver.notify(options.notify)  # type: ignore[attr-defined]
    if options.adjust is not None:
        driver = driver.adjust(options.adjust)  # type: ignore[attr-defined]
    return driver


# ─────────────────────────────────────────────────────────────────────────────
# One wrapper factory per calling convention
# ─────────────────────────────────────────────────────────────────────────────


def _blocking_simple(fn: Callable[..., Any], shape: Shape, options: RetryOptions) -> Callable[..., Any]:
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        driver = BlockingRetry(functools.partial(fn, *args, **kwargs), options.make_backoff())
        return _configure(driver, options).call()
    return wrapper


def _suspending_simple(fn: Callable[..., Any], shape: Shape, options: RetryOptions) -> Callable[..., Any]:
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        driver = Retry(functools.partial(fn, *args, **kwargs), options.make_backoff())
        return await _configure(driver, options)
    return wrapper


def _blocking_context(fn: Callable[..., Any], shape: Shape, options: RetryOptions) -> Callable[..., Any]:
    def attempt(ctx: CallContext) -> tuple[CallContext, Result[Any, Exception]]:
        bound = ctx.bound(shape.signature)
        return ctx, capture(lambda: fn(*bound.args, **bound.kwargs))
    attempt.__qualname__ = shape.name

    def wrapper(*args: Any, **kwargs: Any) -> Any:
        driver = BlockingRetryWithContext(attempt, options.make_backoff())
        _, outcome = _configure(driver, options).context(shape.initial_context(args, kwargs)).call()
        return outcome.unwrap_or_raise()
    return wrapper


def _suspending_context(fn: Callable[..., Any], shape: Shape, options: RetryOptions) -> Callable[..., Any]:
    async def attempt(ctx: CallContext) -> tuple[CallContext, Result[Any, Exception]]:
        bound = ctx.bound(shape.signature)
        try:
            return ctx, Ok(await fn(*bound.args, **bound.kwargs))
        except Exception as e:
            return ctx, Err(e)
    attempt.__qualname__ = shape.name

    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        driver = RetryWithContext(attempt, options.make_backoff())
        _, outcome = await _configure(driver, options).context(shape.initial_context(args, kwargs))
        return outcome.unwrap_or_raise()
    return wrapper


_FACTORIES: dict[CallingConvention, Callable[[Callable[..., Any], Shape, RetryOptions], Callable[..., Any]]] = {
    CallingConvention.BLOCKING_SIMPLE: _blocking_simple,
    CallingConvention.BLOCKING_CONTEXT: _blocking_context,
    CallingConvention.SUSPENDING_SIMPLE: _suspending_simple,
    CallingConvention.SUSPENDING_CONTEXT: _suspending_context,
}


def wrap(fn: F, options: RetryOptions) -> F:
    """Wrap fn according to options; raises ConfigurationError for invalid shapes."""
    shape = Shape.of(fn, options.receiver)
    convention = select_convention(shape, options)
    wrapper = functools.update_wrapper(_FACTORIES[convention](fn, shape, options), fn)
    wrapper.__rebound_convention__ = convention  # type: ignore[attr-defined]
    logger.debug(f"Wrapped {shape.name} as {convention}")
    return wrapper  # type: ignore[return-value]


@overload
def retryable(fn: F, /) -> F: ...


@overload
def retryable(
    *,
    backoff: BackoffBuilder | Callable[[], BackoffBuilder] | None = None,
    sleep: Callable[[float], Any] | None = None,
    when: Callable[[Any], bool] | None = None,
    notify: Callable[[Any, float], Any] | None = None,
    adjust: Callable[[Any, float | None], float | None] | None = None,
    context: bool = False,
    receiver: str | None = None,
) -> Callable[[F], F]: ...


def retryable(fn: F | None = None, /, **options: Any) -> F | Callable[[F], F]:
    """Retry the decorated function on failure.

    Usable bare (`@retryable`) or with options (`@retryable(when=...)`).

    Args:
        backoff: BackoffBuilder, or a factory called once per call
            (default: exponential backoff from settings)
        sleep: Sleep function; must be async for async functions
        when: Predicate deciding which errors are retried (default: all)
        notify: Called with (error, delay) before each sleep
        adjust: Override or veto each delay; async functions only
        context: Thread the call's arguments through a context between attempts
        receiver: "shared" (default), "exclusive" or "owned" for methods

    Returns:
        The wrapped function, or a decorator when called with options

    Raises:
        ConfigurationError: Unknown or invalid options, or an unsupported
            combination for the decorated function's shape
    """
    try:
        parsed = RetryOptions(**options)
    except ValidationError as e:
        target = getattr(fn, "__qualname__", None)
        raise ConfigurationError.from_validation_error(e, target=target) from None

    def decorator(func: F) -> F:
        return wrap(func, parsed)

    return decorator(fn) if fn is not None else decorator
