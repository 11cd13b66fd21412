"""Twitch HTTP API client."""

from .twitch import TwitchAPI

__all__ = ["TwitchAPI"]
