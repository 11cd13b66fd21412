"""Startup sequence: validate the stored token and auto-join the saved channel."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from .config.core import resolve_client_id
from .config.repository import SettingsRepository
from .errors.handling import log_error
from .errors.internal import InternalError
from .notifications import (
    AUTH_EXPIRED_TITLE,
    CONFIGURATION_ERROR_TITLE,
    CONNECTION_FAILED_TITLE,
    Notifier,
    safe_notify,
)
from .storage.secret_store import CredentialStore


class BootstrapOutcome(Enum):
    NO_TOKEN = "no_token"
    REAUTH_REQUIRED = "reauth_required"
    NO_CHANNEL = "no_channel"
    MISSING_CLIENT_ID = "missing_client_id"
    JOINED = "joined"
    JOIN_FAILED = "join_failed"


class ChatConnector(Protocol):
    """The part of the chat service the startup sequence needs."""

    async def validate_token(self, token: str) -> bool: ...

    async def connect_to_channel(
        self, channel_name: str, token: str, client_id: str | None
    ) -> None: ...


class BootstrapSequencer:
    """Runs the startup steps in order, stopping at the first one that fails.

    Nothing here retries or raises: every failure is logged, surfaced through
    the notifier and reported as a BootstrapOutcome.
    """

    def __init__(
        self,
        *,
        credentials: CredentialStore,
        settings: SettingsRepository,
        service: ChatConnector,
        notifier: Notifier | None = None,
        client_id_provider: Callable[[], str | None] = resolve_client_id,
        on_reauth_required: Callable[[], None] | None = None,
    ) -> None:
        self._credentials = credentials
        self._settings = settings
        self._service = service
        self._notifier = notifier
        self._client_id_provider = client_id_provider
        self._on_reauth_required = on_reauth_required

    async def run(self) -> BootstrapOutcome:
        stored = self._credentials.load_credentials()
        token = stored.oauth_token
        if not token:
            self._settings.try_update(reauth_needed=False)
            logging.info("🔑 No Twitch token stored, skipping auto-join")
            return BootstrapOutcome.NO_TOKEN

        valid = await self._service.validate_token(token)
        self._settings.try_update(reauth_needed=not valid)
        if not valid:
            logging.warning("🔐 Stored Twitch token is no longer valid")
            safe_notify(
                self._notifier,
                AUTH_EXPIRED_TITLE,
                "Sign in to Twitch again to keep the bot running.",
            )
            if self._on_reauth_required is not None:
                self._on_reauth_required()
            return BootstrapOutcome.REAUTH_REQUIRED

        channel = stored.channel_id
        if not channel:
            logging.info("📭 No saved channel, waiting for a manual join")
            return BootstrapOutcome.NO_CHANNEL

        client_id = self._client_id_provider()
        if not stored.can_connect(client_id):
            logging.error("💥 Twitch Client ID is not configured")
            safe_notify(
                self._notifier,
                CONFIGURATION_ERROR_TITLE,
                "Set TWITCH_CLIENT_ID to connect to Twitch chat.",
            )
            return BootstrapOutcome.MISSING_CLIENT_ID

        delay = self._settings.load().auto_join_delay
        if delay > 0:
            await asyncio.sleep(delay)

        try:
            await self._service.connect_to_channel(channel, token, client_id)
        except InternalError as e:
            log_error("Auto-join failed", e, {"channel": channel})
            safe_notify(
                self._notifier,
                CONNECTION_FAILED_TITLE,
                f"Could not join {channel}: {str(e)}",
            )
            return BootstrapOutcome.JOIN_FAILED
        logging.info(f"🚀 Auto-joined channel={channel}")
        return BootstrapOutcome.JOINED
