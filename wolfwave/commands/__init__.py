"""Chat command registry and dispatcher."""

from .base import NO_SONG_FALLBACK, BotCommand, InfoProvider
from .builtin import (
    LAST_SONG_TRIGGERS,
    SONG_TRIGGERS,
    last_song_command,
    song_command,
)
from .dispatcher import BotCommandDispatcher

__all__ = [
    "BotCommand",
    "BotCommandDispatcher",
    "InfoProvider",
    "NO_SONG_FALLBACK",
    "SONG_TRIGGERS",
    "LAST_SONG_TRIGGERS",
    "song_command",
    "last_song_command",
]
