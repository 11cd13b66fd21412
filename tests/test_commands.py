from __future__ import annotations

import pytest

from wolfwave.commands import (
    LAST_SONG_TRIGGERS,
    NO_SONG_FALLBACK,
    SONG_TRIGGERS,
    BotCommand,
    BotCommandDispatcher,
    song_command,
)


def test_create_lowercases_triggers_and_rejects_empty() -> None:
    cmd = BotCommand.create("hello", ["!Hello", "  ", "!HI "], "greets")
    assert cmd.triggers == frozenset({"!hello", "!hi"})
    with pytest.raises(ValueError):
        BotCommand.create("empty", ["", "   "], "nothing")


@pytest.mark.parametrize(
    "message",
    ["!song", "  !SONG  ", "!songplease", "!currentsong now", "!NowPlaying"],
)
def test_song_command_matches_prefixes(message: str) -> None:
    cmd = song_command(lambda: "Track by Artist")
    assert cmd.execute(message) == "Track by Artist"


@pytest.mark.parametrize("message", ["song", "hello !song", "!son", ""])
def test_song_command_ignores_non_matching(message: str) -> None:
    cmd = song_command(lambda: "Track by Artist")
    assert cmd.execute(message) is None


def test_missing_provider_returns_fallback() -> None:
    assert song_command().execute("!song") == NO_SONG_FALLBACK


def test_failing_provider_returns_fallback(caplog: pytest.LogCaptureFixture) -> None:
    def boom() -> str:
        raise RuntimeError("player gone")

    cmd = song_command(boom)
    assert cmd.execute("!song") == NO_SONG_FALLBACK
    assert "provider failed" in caplog.text


def test_empty_provider_response_returns_fallback() -> None:
    assert song_command(lambda: "").execute("!song") == NO_SONG_FALLBACK


def test_with_provider_returns_new_instance() -> None:
    original = song_command()
    updated = original.with_provider(lambda: "X")
    assert original.provider is None
    assert updated.execute("!song") == "X"
    assert updated == original  # provider is not part of identity


def test_default_dispatcher_registers_builtin_triggers() -> None:
    dispatcher = BotCommandDispatcher.with_default_commands(
        current_song=lambda: "now", last_song=lambda: "before"
    )
    for trigger in SONG_TRIGGERS:
        assert dispatcher.process_message(trigger) == "now"
    for trigger in LAST_SONG_TRIGGERS:
        assert dispatcher.process_message(trigger) == "before"


def test_dispatcher_first_registered_match_wins() -> None:
    dispatcher = BotCommandDispatcher()
    dispatcher.register(BotCommand.create("a", ["!x"], "first", lambda: "first"))
    dispatcher.register(BotCommand.create("b", ["!x"], "second", lambda: "second"))
    assert dispatcher.process_message("!x") == "first"


def test_dispatcher_ignores_blank_and_unknown_messages() -> None:
    dispatcher = BotCommandDispatcher.with_default_commands()
    assert dispatcher.process_message("   ") is None
    assert dispatcher.process_message("hello chat") is None


def test_dispatcher_provider_injection_after_construction() -> None:
    dispatcher = BotCommandDispatcher.with_default_commands()
    assert dispatcher.process_message("!song") == NO_SONG_FALLBACK
    dispatcher.set_current_song_provider(lambda: "🐺 Now playing: A by B")
    dispatcher.set_last_song_provider(lambda: "🐺 Last howl: C by D")
    assert dispatcher.process_message("!song") == "🐺 Now playing: A by B"
    assert dispatcher.process_message("!last") == "🐺 Last howl: C by D"
    assert len(dispatcher.commands) == 2
