"""Twitch OAuth device authorization."""

from .device_flow import CancelToken, DeviceCodeFlow
from .types import BotIdentity, DeviceCodeState, TwitchCredentials

__all__ = [
    "CancelToken",
    "DeviceCodeFlow",
    "DeviceCodeState",
    "TwitchCredentials",
    "BotIdentity",
]
