"""Configuration errors for retry definitions.

Operation errors are never wrapped: whatever the retried operation raised
surfaces verbatim. The only errors this package raises on its own account
are configuration errors, reported when a retry is defined rather than
when it runs.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import ValidationError


class ConfigCode(StrEnum):
    """Machine-readable reasons a retry definition was rejected."""
    ADJUST_REQUIRES_ASYNC = "ADJUST_REQUIRES_ASYNC"
    EXCLUSIVE_RECEIVER_CONTEXT = "EXCLUSIVE_RECEIVER_CONTEXT"
    OWNED_RECEIVER_CONTEXT = "OWNED_RECEIVER_CONTEXT"
    NON_IDENTIFIER_PARAMETER = "NON_IDENTIFIER_PARAMETER"
    UNKNOWN_OPTION = "UNKNOWN_OPTION"
    INVALID_OPTION = "INVALID_OPTION"
    UNSUPPORTED_TARGET = "UNSUPPORTED_TARGET"


class ReboundError(Exception):
    """Base class for errors raised by rebound itself."""


class ConfigurationError(ReboundError, ValueError):
    """Invalid retry definition.
    
    Attributes:
        code: Classification of the problem
        target: Qualified name of the function being wrapped, if known
    """
    
    def __init__(self, message: str, code: ConfigCode = ConfigCode.INVALID_OPTION, *, target: str | None = None) -> None:
        self.code = code
        self.target = target
        super().__init__(f"{target}: {message}" if target else message)
    
    @classmethod
    def from_validation_error(cls, exc: ValidationError, *, target: str | None = None) -> ConfigurationError:
        """Translate option validation failures, keeping the first problem."""
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ())) or "options"
        if first.get("type") == "extra_forbidden":
            return cls(f"unknown parameter `{loc}`", ConfigCode.UNKNOWN_OPTION, target=target)
        return cls(f"invalid value for `{loc}`: {first.get('msg', 'invalid')}", ConfigCode.INVALID_OPTION, target=target)
