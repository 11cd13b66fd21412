"""Routes chat messages to the first matching bot command."""

from __future__ import annotations

import logging

from .base import BotCommand, InfoProvider
from .builtin import LAST_SONG_COMMAND, SONG_COMMAND, last_song_command, song_command


class BotCommandDispatcher:
    """Ordered registry of bot commands.

    Registration order is priority: ``process_message`` returns the response
    of the first registered command that matches, and nothing else is
    consulted. Messages that match no command are ignored silently.
    """

    def __init__(self) -> None:
        self._commands: list[BotCommand] = []

    @classmethod
    def with_default_commands(
        cls,
        current_song: InfoProvider | None = None,
        last_song: InfoProvider | None = None,
    ) -> BotCommandDispatcher:
        dispatcher = cls()
        dispatcher.register(song_command(current_song))
        dispatcher.register(last_song_command(last_song))
        return dispatcher

    @property
    def commands(self) -> tuple[BotCommand, ...]:
        return tuple(self._commands)

    def register(self, command: BotCommand) -> None:
        self._commands.append(command)
        logging.debug(
            f"🧩 Registered command {command.name} triggers={sorted(command.triggers)}"
        )

    def set_current_song_provider(self, provider: InfoProvider | None) -> None:
        self._replace_provider(SONG_COMMAND, provider)

    def set_last_song_provider(self, provider: InfoProvider | None) -> None:
        self._replace_provider(LAST_SONG_COMMAND, provider)

    def _replace_provider(self, name: str, provider: InfoProvider | None) -> None:
        # Commands are immutable; swap in a copy carrying the new provider.
        self._commands = [
            cmd.with_provider(provider) if cmd.name == name else cmd
            for cmd in self._commands
        ]

    def process_message(self, message: str) -> str | None:
        """Return the first command response for ``message``, or None."""
        trimmed = message.strip()
        if not trimmed:
            return None
        for command in self._commands:
            response = command.execute(trimmed)
            if response:
                logging.debug(f"🤖 Command executed name={command.name}")
                return response
        return None
