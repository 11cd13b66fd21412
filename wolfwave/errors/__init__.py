"""Error hierarchy and error handling helpers."""

from .internal import (
    AccessDenied,
    AuthError,
    AuthorizationPending,
    ChatConnectionError,
    ConfigurationError,
    ConnectionBusyError,
    DeviceAuthError,
    ExpiredToken,
    InternalError,
    InvalidClient,
    NetworkError,
    ProtocolError,
    SecretStoreError,
    SlowDown,
    UnknownDeviceAuthError,
)

__all__ = [
    "InternalError",
    "NetworkError",
    "ProtocolError",
    "ConfigurationError",
    "SecretStoreError",
    "AuthError",
    "DeviceAuthError",
    "AccessDenied",
    "ExpiredToken",
    "InvalidClient",
    "AuthorizationPending",
    "SlowDown",
    "UnknownDeviceAuthError",
    "ChatConnectionError",
    "ConnectionBusyError",
]
