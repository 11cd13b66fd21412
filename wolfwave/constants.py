"""
Configuration constants for the WolfWave Twitch bot

This module contains all configurable constants used throughout the application.
Numeric constants can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Environment variable names
CLIENT_ID_ENV = "TWITCH_CLIENT_ID"
SETTINGS_FILE_ENV = "WOLFWAVE_SETTINGS_FILE"

# Twitch OAuth endpoints (public, well-known URLs)
DEVICE_CODE_URL = "https://id.twitch.tv/oauth2/device"
TOKEN_URL = "https://id.twitch.tv/oauth2/token"  # noqa: S105  # nosec B105
VALIDATE_URL = "https://id.twitch.tv/oauth2/validate"
DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
DEFAULT_SCOPES = ("user:read:chat", "user:write:chat")

# Twitch Helix / EventSub
HELIX_BASE_URL = "https://api.twitch.tv/helix"
EVENTSUB_WS_URL = "wss://eventsub.wss.twitch.tv/ws"
EVENTSUB_CHAT_MESSAGE = "channel.chat.message"

# Device flow polling
DEVICE_FLOW_DEFAULT_INTERVAL = _get_env_int(
    "DEVICE_FLOW_DEFAULT_INTERVAL", 5
)  # Used when Twitch omits the interval field
DEVICE_FLOW_SLOW_DOWN_INCREMENT = _get_env_int(
    "DEVICE_FLOW_SLOW_DOWN_INCREMENT", 5
)  # Seconds added to the interval on every slow_down response
DEVICE_FLOW_DEFAULT_EXPIRES_IN = _get_env_int(
    "DEVICE_FLOW_DEFAULT_EXPIRES_IN", 1800
)  # Used when Twitch omits expires_in

# Chat connection
EVENTSUB_WELCOME_TIMEOUT_SECONDS = _get_env_float(
    "EVENTSUB_WELCOME_TIMEOUT_SECONDS", 10.0
)  # Max wait for session_welcome after opening the socket
EVENTSUB_RECONNECT_MAX_ATTEMPTS = _get_env_int(
    "EVENTSUB_RECONNECT_MAX_ATTEMPTS", 5
)  # Attempts to restore the socket + subscription after an abnormal close
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_float(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 15.0
)  # Total timeout applied to the shared aiohttp session

# Bootstrap
AUTO_JOIN_DELAY_SECONDS = _get_env_float(
    "AUTO_JOIN_DELAY_SECONDS", 2.0
)  # Grace period before auto-joining the saved channel

# Secret store
KEYRING_SERVICE = "com.mrdemonwolf.wolfwave"
