"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .auth_token.authorizer import DeviceAuthorizer
from .bootstrap import BootstrapSequencer
from .chat.service import TwitchChatService
from .commands.dispatcher import BotCommandDispatcher
from .config.core import settings_path
from .config.repository import SettingsRepository
from .constants import HTTP_REQUEST_TIMEOUT_SECONDS
from .music.now_playing import NowPlayingTracker
from .notifications import LogNotifier, Notifier
from .storage.secret_store import CredentialStore, KeyringSecretStore, SecretStore


class ApplicationContext:
    """Holds the shared session, stores and services for one process."""

    session: aiohttp.ClientSession | None
    credentials: CredentialStore
    settings: SettingsRepository
    tracker: NowPlayingTracker
    dispatcher: BotCommandDispatcher
    notifier: Notifier
    chat: TwitchChatService | None
    authorizer: DeviceAuthorizer | None

    def __init__(
        self,
        *,
        secret_store: SecretStore | None = None,
        settings: SettingsRepository | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.session = None
        self.credentials = CredentialStore(secret_store or KeyringSecretStore())
        self.settings = settings or SettingsRepository(settings_path())
        self.tracker = NowPlayingTracker()
        self.dispatcher = BotCommandDispatcher.with_default_commands()
        self.dispatcher.set_current_song_provider(self.tracker.current_song_info)
        self.dispatcher.set_last_song_provider(self.tracker.last_song_info)
        self.notifier = notifier or LogNotifier()
        self.chat = None
        self.authorizer = None
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(cls, **kwargs) -> ApplicationContext:
        """Create the context and open the shared HTTP session.

        Keyword arguments are passed to the constructor, which lets tests
        supply in-memory stores.
        """
        ctx = cls(**kwargs)
        logging.debug("🧪 Creating application context")
        ctx.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=HTTP_REQUEST_TIMEOUT_SECONDS)
        )
        logging.debug("🔗 HTTP session created")
        ctx.chat = TwitchChatService(
            session=ctx.session, settings=ctx.settings, dispatcher=ctx.dispatcher
        )
        ctx.authorizer = DeviceAuthorizer(
            session=ctx.session, credentials=ctx.credentials, settings=ctx.settings
        )
        return ctx

    def bootstrap_sequencer(self) -> BootstrapSequencer:
        if self.chat is None:
            raise RuntimeError("ApplicationContext.create() has not run")
        return BootstrapSequencer(
            credentials=self.credentials,
            settings=self.settings,
            service=self.chat,
            notifier=self.notifier,
        )

    # --------------------------- Lifecycle -------------------------- #
    async def shutdown(self) -> None:
        """Leave chat, stop any authorization and close the HTTP session."""
        async with self._lock:
            logging.info("🔻 Application context shutdown initiated")
            if self.authorizer is not None:
                await self.authorizer.cancel()
            if self.chat is not None:
                await self.chat.leave_channel()
            await self._close_http_session()
            logging.info("✅ Application context shutdown complete")

    async def _close_http_session(self) -> None:
        if not self.session:
            return
        try:
            await self.session.close()
        except (aiohttp.ClientError, OSError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.session = None
