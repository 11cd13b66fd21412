"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the Twitch integration.
Only raise these inside application/network boundaries; never surface raw
aiohttp / JSON / websockets errors to callers, wrap them instead.

Classes:
  InternalError          – Base for all internal errors.
  NetworkError           – Transient network/IO issues.
  ProtocolError          – Malformed or unexpected server responses.
  ConfigurationError     – Missing or invalid local configuration (client ID).
  SecretStoreError       – The secret store rejected a write.
  AuthError              – Token rejected by Twitch.
  DeviceAuthError        – Base for device-authorization outcomes.
  ChatConnectionError    – Channel resolve / subscribe / socket failures.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This includes connection failures, resets and timeouts.
    """


class ProtocolError(InternalError):
    """Exception raised when a server response is malformed or unexpected.

    Covers non-2xx statuses without a recognised error code, non-JSON bodies
    and bodies missing required fields.
    """


class ConfigurationError(InternalError):
    """Exception raised when required local configuration is missing."""


class SecretStoreError(InternalError):
    """Exception raised when the secret store cannot persist a value."""


class AuthError(InternalError):
    """Exception raised when Twitch rejects the OAuth token."""


class DeviceAuthError(InternalError):
    """Base class for OAuth device-authorization grant outcomes."""

    #: Error code as reported by Twitch.
    code = "unknown"


class AuthorizationPending(DeviceAuthError):
    """The user has not finished authorizing yet (control-flow signal)."""

    code = "authorization_pending"


class SlowDown(DeviceAuthError):
    """Twitch asked the client to poll less often (control-flow signal)."""

    code = "slow_down"


class AccessDenied(DeviceAuthError):
    """The user declined the authorization request."""

    code = "access_denied"


class ExpiredToken(DeviceAuthError):
    """The device code expired before the user authorized it."""

    code = "expired_token"


class InvalidClient(DeviceAuthError):
    """Twitch does not recognise the configured client ID."""

    code = "invalid_client"


class UnknownDeviceAuthError(DeviceAuthError):
    """Any device-flow error code not covered by a dedicated class."""


class ChatConnectionError(InternalError):
    """Exception raised when joining or keeping a chat channel fails."""


class ConnectionBusyError(ChatConnectionError):
    """Raised when a connect is requested while another one is in flight."""


__all__ = [
    "InternalError",
    "NetworkError",
    "ProtocolError",
    "ConfigurationError",
    "SecretStoreError",
    "AuthError",
    "DeviceAuthError",
    "AuthorizationPending",
    "SlowDown",
    "AccessDenied",
    "ExpiredToken",
    "InvalidClient",
    "UnknownDeviceAuthError",
    "ChatConnectionError",
    "ConnectionBusyError",
]
