"""Error handling for rebound.

- ConfigCode / ConfigurationError: definition-time rejections
- Result/Ok/Err: attempt outcomes for context-threaded retries
"""

from .errors import ConfigCode, ConfigurationError, ReboundError
from .result import Err, Ok, Result, capture

__all__ = [
    "ConfigCode", "ConfigurationError", "ReboundError",
    "Result", "Ok", "Err", "capture",
]
