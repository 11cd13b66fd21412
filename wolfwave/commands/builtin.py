"""Built-in song commands."""

from __future__ import annotations

from .base import BotCommand, InfoProvider

SONG_COMMAND = "song"
LAST_SONG_COMMAND = "last_song"

SONG_TRIGGERS = ("!song", "!currentsong", "!nowplaying")
LAST_SONG_TRIGGERS = ("!last", "!lastsong", "!prevsong")


def song_command(provider: InfoProvider | None = None) -> BotCommand:
    """Command answering with the track that is playing right now."""
    return BotCommand.create(
        SONG_COMMAND,
        SONG_TRIGGERS,
        "Displays the currently playing track",
        provider,
    )


def last_song_command(provider: InfoProvider | None = None) -> BotCommand:
    """Command answering with the previously played track."""
    return BotCommand.create(
        LAST_SONG_COMMAND,
        LAST_SONG_TRIGGERS,
        "Displays the last played track",
        provider,
    )
