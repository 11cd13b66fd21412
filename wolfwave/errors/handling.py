from __future__ import annotations

from ..logging_config import log_structured_error
from .internal import (
    AuthError,
    ChatConnectionError,
    ConfigurationError,
    DeviceAuthError,
    InternalError,
    NetworkError,
    ProtocolError,
)


def classify_error(error: Exception) -> str:
    """Map an exception onto a short error category used in structured logs.

    Args:
        error: The exception to classify.

    Returns:
        One of "network", "auth", "device_auth", "protocol", "connection",
        "config", "internal" or "unknown".
    """
    if isinstance(error, NetworkError | OSError | ConnectionError):
        return "network"
    if isinstance(error, AuthError):
        return "auth"
    if isinstance(error, DeviceAuthError):
        return "device_auth"
    if isinstance(error, ProtocolError):
        return "protocol"
    if isinstance(error, ChatConnectionError):
        return "connection"
    if isinstance(error, ConfigurationError):
        return "config"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(message: str, error: Exception, context: dict | None = None) -> None:
    """Logs an error message with the associated exception details.

    This function formats and logs an error message along with the string
    representation of the exception using structured logging for better
    error tracking and aggregation.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    merged = dict(getattr(error, "data", None) or {})
    if context:
        merged.update(context)
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=merged or None,
    )
