"""Result type for attempt outcomes.

Context-threaded attempts cannot raise and still hand their context back, so
they report the outcome as a value instead:

    >>> def attempt(ctx):
    ...     return ctx, Ok(42) if ctx.ready else Err(NotReady())

Plain (non-context) retries keep using ordinary exceptions; `capture` bridges
the two styles.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")

_OK = True
_ERR = False


class Result(Generic[T, E]):
    """Discriminated union of a success value (Ok) or an error (Err).
    
    Examples:
        >>> Ok(2).map(lambda x: x * 2).unwrap()
        4
        >>> Err("busy").unwrap_or(0)
        0
    """
    
    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)
    
    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value = value
        self._is_ok = is_ok
    
    def is_ok(self) -> bool:
        return self._is_ok
    
    def is_err(self) -> bool:
        return not self._is_ok
    
    # ─── Value Extraction ──────────────────────────────────────────────
    
    def unwrap(self) -> T:
        """Extract Ok value. Raises RuntimeError on Err."""
        if self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"unwrap() on Err: {self._value!r}")
    
    def unwrap_err(self) -> E:
        """Extract Err value. Raises RuntimeError on Ok."""
        if not self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"unwrap_err() on Ok: {self._value!r}")
    
    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_ok else default  # type: ignore[return-value]
    
    def unwrap_or_raise(self) -> T:
        """Extract Ok value, or raise the error itself when it is an exception.
        
        Non-exception errors are wrapped in RuntimeError so callers always
        get something raisable.
        """
        if self._is_ok:
            return self._value  # type: ignore[return-value]
        if isinstance(self._value, BaseException):
            raise self._value
        raise RuntimeError(f"operation failed: {self._value!r}")
    
    def ok(self) -> T | None:
        return self._value if self._is_ok else None  # type: ignore[return-value]
    
    def err(self) -> E | None:
        return self._value if not self._is_ok else None  # type: ignore[return-value]
    
    # ─── Combinators ───────────────────────────────────────────────────
    
    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        return Result(f(self._value), _OK) if self._is_ok else Result(self._value, _ERR)  # type: ignore[arg-type]
    
    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        return Result(f(self._value), _ERR) if not self._is_ok else Result(self._value, _OK)  # type: ignore[arg-type]
    
    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain an operation that can itself fail."""
        return f(self._value) if self._is_ok else Result(self._value, _ERR)  # type: ignore[arg-type]
    
    # ─── Dunder Methods ──────────────────────────────────────────────────
    
    __bool__ = lambda self: self._is_ok  # noqa: E731
    __hash__ = lambda self: hash((self._is_ok, self._value))  # noqa: E731
    __repr__ = lambda self: f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"  # noqa: E731
    
    def __eq__(self, other: object) -> bool:
        return self._is_ok == other._is_ok and self._value == other._value if isinstance(other, Result) else NotImplemented
    
    def __iter__(self) -> Iterator[T]:
        if self._is_ok:
            yield self._value  # type: ignore[misc]


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    """Construct Ok variant (success)."""
    return Result(value, _OK)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    """Construct Err variant (failure)."""
    return Result(error, _ERR)


def capture(fn: Callable[[], T]) -> Result[T, Exception]:
    """Run fn, returning Ok(value) or Err(exception).
    
    Only Exception subclasses are captured; cancellation and interpreter
    exits propagate.
    """
    try:
        return Result(fn(), _OK)
    except Exception as e:
        return Result(e, _ERR)
