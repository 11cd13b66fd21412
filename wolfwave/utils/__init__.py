"""Utility functions package.

Exposed functions:
    format_duration: Formats time durations into human-readable strings.
    emit_startup_instructions: Emits startup instructions for the application.
    retry_async: Retries an async operation with exponential backoff.
"""

from .helpers import emit_startup_instructions, format_duration
from .retry import RetryExhaustedError, retry_async

__all__ = [
    "format_duration",
    "emit_startup_instructions",
    "retry_async",
    "RetryExhaustedError",
]
