"""Chat command value type."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

InfoProvider = Callable[[], str]

NO_SONG_FALLBACK = "No song is currently playing"


@dataclass(frozen=True)
class BotCommand:
    """A chat command: trigger prefixes plus the provider that answers it.

    A command matches when the trimmed, lower-cased message starts with any
    of its triggers. ``"!songplease"`` therefore matches ``"!song"``.

    Attributes:
        name: Short identifier used in logs.
        triggers: Lower-cased literal prefixes, e.g. ``"!song"``.
        description: Human readable summary of what the command answers.
        provider: Zero-argument callable supplying the live response text.
        fallback: Response used when no provider is set or it fails.
    """

    name: str
    triggers: frozenset[str]
    description: str
    provider: InfoProvider | None = field(default=None, compare=False)
    fallback: str = NO_SONG_FALLBACK

    @classmethod
    def create(
        cls,
        name: str,
        triggers: Iterable[str],
        description: str,
        provider: InfoProvider | None = None,
        fallback: str = NO_SONG_FALLBACK,
    ) -> BotCommand:
        normalized = frozenset(t.strip().lower() for t in triggers if t and t.strip())
        if not normalized:
            raise ValueError(f"command {name!r} needs at least one trigger")
        return cls(name, normalized, description, provider, fallback)

    def matches(self, message: str) -> bool:
        text = message.strip().lower()
        return any(text.startswith(trigger) for trigger in self.triggers)

    def execute(self, message: str) -> str | None:
        """Return the response for ``message`` or None when it does not match."""
        if not self.matches(message):
            return None
        if self.provider is None:
            return self.fallback
        try:
            response = self.provider()
        except Exception as e:
            logging.warning(f"⚠️ Command {self.name} provider failed: {type(e).__name__} {str(e)}")
            return self.fallback
        return response or self.fallback

    def with_provider(self, provider: InfoProvider | None) -> BotCommand:
        return replace(self, provider=provider)
