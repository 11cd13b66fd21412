from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from wolfwave.bootstrap import BootstrapOutcome, BootstrapSequencer
from wolfwave.config.repository import SettingsRepository
from wolfwave.errors import ChatConnectionError
from wolfwave.notifications import (
    AUTH_EXPIRED_TITLE,
    CONFIGURATION_ERROR_TITLE,
    CONNECTION_FAILED_TITLE,
    LogNotifier,
)
from wolfwave.storage.secret_store import CredentialStore


class _RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def notify(self, title: str, message: str) -> None:
        self.sent.append((title, message))


def _service(valid: bool = True) -> MagicMock:
    service = MagicMock()
    service.validate_token = AsyncMock(return_value=valid)
    service.connect_to_channel = AsyncMock(return_value=None)
    return service


@pytest.fixture()
def no_delay(settings_repo: SettingsRepository) -> SettingsRepository:
    settings_repo.update(auto_join_delay=0)
    return settings_repo


def _sequencer(
    credentials: CredentialStore,
    settings: SettingsRepository,
    service: MagicMock,
    notifier: _RecordingNotifier,
    client_id: str | None = "cid",
    on_reauth=None,  # noqa: ANN001
) -> BootstrapSequencer:
    return BootstrapSequencer(
        credentials=credentials,
        settings=settings,
        service=service,
        notifier=notifier,
        client_id_provider=lambda: client_id,
        on_reauth_required=on_reauth,
    )


async def test_no_token_clears_flag_and_stops(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    no_delay.update(reauth_needed=True)
    service = _service()
    notifier = _RecordingNotifier()
    outcome = await _sequencer(credentials, no_delay, service, notifier).run()
    assert outcome is BootstrapOutcome.NO_TOKEN
    assert no_delay.load().reauth_needed is False
    service.validate_token.assert_not_awaited()
    assert notifier.sent == []


async def test_invalid_token_sets_flag_notifies_and_calls_back(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    credentials.save_twitch_token("stale")
    credentials.save_twitch_channel_id("streamer")
    service = _service(valid=False)
    notifier = _RecordingNotifier()
    callback = MagicMock()

    outcome = await _sequencer(
        credentials, no_delay, service, notifier, on_reauth=callback
    ).run()

    assert outcome is BootstrapOutcome.REAUTH_REQUIRED
    assert no_delay.load().reauth_needed is True
    assert [title for title, _ in notifier.sent] == [AUTH_EXPIRED_TITLE]
    callback.assert_called_once_with()
    service.connect_to_channel.assert_not_awaited()


async def test_valid_token_without_channel(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    no_delay.update(reauth_needed=True)
    credentials.save_twitch_token("good")
    service = _service()
    outcome = await _sequencer(credentials, no_delay, service, _RecordingNotifier()).run()
    assert outcome is BootstrapOutcome.NO_CHANNEL
    assert no_delay.load().reauth_needed is False
    service.connect_to_channel.assert_not_awaited()


async def test_missing_client_id_notifies_configuration_error(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    credentials.save_twitch_token("good")
    credentials.save_twitch_channel_id("streamer")
    service = _service()
    notifier = _RecordingNotifier()
    outcome = await _sequencer(
        credentials, no_delay, service, notifier, client_id=None
    ).run()
    assert outcome is BootstrapOutcome.MISSING_CLIENT_ID
    assert [title for title, _ in notifier.sent] == [CONFIGURATION_ERROR_TITLE]
    service.connect_to_channel.assert_not_awaited()


async def test_valid_token_auto_joins_once(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    credentials.save_twitch_token("good")
    credentials.save_twitch_channel_id("streamer")
    service = _service()
    outcome = await _sequencer(credentials, no_delay, service, _RecordingNotifier()).run()
    assert outcome is BootstrapOutcome.JOINED
    service.connect_to_channel.assert_awaited_once_with("streamer", "good", "cid")


async def test_join_failure_is_notified_not_retried(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    credentials.save_twitch_token("good")
    credentials.save_twitch_channel_id("streamer")
    service = _service()
    service.connect_to_channel.side_effect = ChatConnectionError("socket refused")
    notifier = _RecordingNotifier()
    outcome = await _sequencer(credentials, no_delay, service, notifier).run()
    assert outcome is BootstrapOutcome.JOIN_FAILED
    assert service.connect_to_channel.await_count == 1
    assert [title for title, _ in notifier.sent] == [CONNECTION_FAILED_TITLE]


async def test_auto_join_waits_grace_period(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    settings_repo.update(auto_join_delay=2.0)
    credentials.save_twitch_token("good")
    credentials.save_twitch_channel_id("streamer")
    service = _service()
    with patch("wolfwave.bootstrap.asyncio.sleep", new_callable=AsyncMock) as sleep_mock:
        outcome = await _sequencer(credentials, settings_repo, service, _RecordingNotifier()).run()
    assert outcome is BootstrapOutcome.JOINED
    sleep_mock.assert_awaited_once_with(2.0)


async def test_failing_notifier_does_not_crash(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    credentials.save_twitch_token("stale")
    notifier = MagicMock()
    notifier.notify.side_effect = RuntimeError("no display")
    outcome = await BootstrapSequencer(
        credentials=credentials,
        settings=no_delay,
        service=_service(valid=False),
        notifier=notifier,
    ).run()
    assert outcome is BootstrapOutcome.REAUTH_REQUIRED


async def test_unwritable_settings_do_not_crash_startup(
    credentials: CredentialStore, unwritable_settings_repo: SettingsRepository
) -> None:
    credentials.save_twitch_token("stale")
    notifier = _RecordingNotifier()
    outcome = await _sequencer(
        credentials, unwritable_settings_repo, _service(valid=False), notifier
    ).run()
    assert outcome is BootstrapOutcome.REAUTH_REQUIRED
    assert unwritable_settings_repo.load().reauth_needed is True
    assert [title for title, _ in notifier.sent] == [AUTH_EXPIRED_TITLE]


async def test_uses_stored_credentials_to_gate_auto_join(
    credentials: CredentialStore, no_delay: SettingsRepository
) -> None:
    credentials.save_twitch_token("good")
    credentials.save_twitch_channel_id("streamer")
    service = _service()
    outcome = await _sequencer(
        credentials, no_delay, service, _RecordingNotifier(), client_id=""
    ).run()
    assert outcome is BootstrapOutcome.MISSING_CLIENT_ID
    service.connect_to_channel.assert_not_awaited()


def test_log_notifier_writes_warning(caplog) -> None:  # noqa: ANN001
    with caplog.at_level(logging.WARNING):
        LogNotifier().notify(CONNECTION_FAILED_TITLE, "socket refused")
    assert f"{CONNECTION_FAILED_TITLE}: socket refused" in caplog.text
