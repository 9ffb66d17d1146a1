"""Testing utilities for code that uses rebound.

Provides:
- ScriptedOperation: Deterministic failing/succeeding operation
- RecordingSleeper: Records delays instead of sleeping (sync and async)
- RecordingNotifier: Records notify hook calls
"""

from .mock import Invocation, RecordingNotifier, RecordingSleeper, ScriptedOperation

__all__ = ["Invocation", "RecordingNotifier", "RecordingSleeper", "ScriptedOperation"]
