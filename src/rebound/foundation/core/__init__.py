"""Wrapping layer: map a function's shape onto a retry driver."""

from .decorator import retryable, wrap
from .shape import CallingConvention, ReceiverKind, RetryOptions, Shape, select_convention

__all__ = [
    "retryable", "wrap",
    "CallingConvention", "ReceiverKind", "RetryOptions", "Shape", "select_convention",
]
