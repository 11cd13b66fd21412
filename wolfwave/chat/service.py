"""Twitch chat connection service.

Joins one channel through an EventSub WebSocket (inbound messages) and the
Helix chat API (outbound messages), routes chat commands to the dispatcher
and reports connection state transitions to observers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import aiohttp

from ..api.twitch import TwitchAPI
from ..commands.dispatcher import BotCommandDispatcher
from ..config.repository import SettingsRepository
from ..constants import EVENTSUB_RECONNECT_MAX_ATTEMPTS
from ..errors.handling import log_error
from ..errors.internal import (
    AuthError,
    ChatConnectionError,
    ConfigurationError,
    ConnectionBusyError,
    InternalError,
    ProtocolError,
)
from ..utils import RetryExhaustedError, retry_async
from .connection_state import ConnectionObserver, ConnectionState, ConnectionStateManager
from .message_processor import (
    AUTH_REVOCATION_REASONS,
    NOTIFICATION,
    REVOCATION,
    SESSION_KEEPALIVE,
    SESSION_RECONNECT,
    ChatEvent,
    EventSubFrame,
    parse_chat_event,
    revocation_reason,
)
from .websocket_connector import WebSocketConnector

ConnectorFactory = Callable[[], WebSocketConnector]


class TwitchChatService:
    """Chat connection lifecycle for a single channel.

    States move ``DISCONNECTED -> CONNECTING -> CONNECTED`` and back to
    ``DISCONNECTED`` on leave or failure. A rejected token moves to
    ``REAUTH_REQUIRED`` from any state; only a connect with a token Twitch
    accepts leaves it.

    Attributes:
        channel_login (str | None): Login of the joined channel, when known.
        broadcaster_id (str | None): User ID of the joined channel.
        bot_id (str | None): User ID of the bot account.
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        settings: SettingsRepository,
        dispatcher: BotCommandDispatcher | None = None,
        connector_factory: ConnectorFactory = WebSocketConnector,
        api: TwitchAPI | None = None,
    ) -> None:
        self._api = api or TwitchAPI(session)
        self._settings = settings
        self._dispatcher = dispatcher
        self._connector_factory = connector_factory
        self._state = ConnectionStateManager()
        self._connect_lock = asyncio.Lock()
        self._connector: WebSocketConnector | None = None
        self._listen_task: asyncio.Task[None] | None = None
        self._subscription_id: str | None = None
        self._token: str | None = None
        self._client_id: str | None = None
        self._reauth_pending = False
        self._commands_enabled = settings.load().commands_enabled
        self.channel_login: str | None = None
        self.broadcaster_id: str | None = None
        self.bot_id: str | None = None

    # ---- state & observers ----
    @property
    def state(self) -> ConnectionState:
        return self._state.state

    @property
    def is_connected(self) -> bool:
        return self._state.state is ConnectionState.CONNECTED

    def add_observer(self, observer: ConnectionObserver) -> None:
        self._state.add_observer(observer)

    def remove_observer(self, observer: ConnectionObserver) -> None:
        self._state.remove_observer(observer)

    @property
    def commands_enabled(self) -> bool:
        return self._commands_enabled

    @commands_enabled.setter
    def commands_enabled(self, value: bool) -> None:
        self._commands_enabled = bool(value)
        self._settings.try_update(commands_enabled=self._commands_enabled)
        logging.info(
            f"⚙️ Chat commands {'enabled' if self._commands_enabled else 'disabled'}"
        )

    # ---- token validation ----
    async def validate_token(self, token: str) -> bool:
        """Check a token against Twitch's validate endpoint.

        Never raises; network and protocol failures count as invalid.
        """
        if not token:
            return False
        try:
            payload = await self._api.validate_token(token)
        except InternalError as e:
            log_error("Token validation failed", e)
            return False
        valid = payload is not None
        logging.info(f"🔍 Token validation result valid={valid}")
        return valid

    # ---- connection lifecycle ----
    async def connect_to_channel(
        self, channel_name: str, token: str, client_id: str | None
    ) -> None:
        """Validate ``token``, resolve the channel and join it.

        Raises:
            ConfigurationError: If ``client_id`` is missing.
            ConnectionBusyError: If another connect is in flight.
            AuthError: If Twitch rejects the token.
            ChatConnectionError: If the channel cannot be resolved or joined.
        """
        if not client_id:
            raise ConfigurationError("Missing Twitch Client ID")
        self._ensure_not_busy()
        async with self._connect_lock:
            await self._leave_if_active()
            self._state.transition(ConnectionState.CONNECTING)
            bot_id, bot_login = await self._resolve_bot(token)
            broadcaster_id = await self._resolve_channel(channel_name, token, client_id)
            logging.info(
                f"🎯 Joining channel={channel_name} broadcaster_id={broadcaster_id} bot={bot_login}"
            )
            await self._join(broadcaster_id, bot_id, token, client_id)
            self.channel_login = channel_name.strip().lstrip("#").lower()

    async def join_channel(
        self, broadcaster_id: str, bot_id: str, token: str, client_id: str | None
    ) -> None:
        """Join a channel whose IDs are already known.

        Raises:
            ConfigurationError: If ``client_id`` is missing.
            ConnectionBusyError: If another connect is in flight.
            AuthError: If Twitch rejects the token.
            ChatConnectionError: If the socket or subscription cannot be set up.
        """
        if not client_id:
            raise ConfigurationError("Missing Twitch Client ID")
        self._ensure_not_busy()
        async with self._connect_lock:
            await self._leave_if_active()
            self._state.transition(ConnectionState.CONNECTING)
            await self._join(broadcaster_id, bot_id, token, client_id)

    async def leave_channel(self) -> None:
        """Stop listening and close the connection. Safe to call repeatedly."""
        task = self._listen_task
        self._listen_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await self._teardown()
        if self._state.state is not ConnectionState.REAUTH_REQUIRED:
            self._state.transition(ConnectionState.DISCONNECTED)
        self.channel_login = None

    async def send_message(self, text: str, reply_to: str | None = None) -> bool:
        """Post ``text`` to the joined channel, optionally as a threaded reply.

        Returns:
            bool: True when Twitch accepted the message; False when not
            connected or when sending failed.
        """
        if (
            not self.is_connected
            or not self.broadcaster_id
            or not self.bot_id
            or not self._token
            or not self._client_id
        ):
            logging.debug("💤 Not connected, dropping outgoing chat message")
            return False
        try:
            sent = await self._api.send_chat_message(
                access_token=self._token,
                client_id=self._client_id,
                broadcaster_id=self.broadcaster_id,
                sender_id=self.bot_id,
                message=text,
                reply_parent_message_id=reply_to,
            )
        except AuthError as e:
            log_error("Chat send rejected", e)
            await self._teardown()
            self._mark_reauth_required()
            return False
        except InternalError as e:
            log_error("Chat send failed", e)
            return False
        if sent:
            logging.info(f"💬 Sent chat message channel={self.channel_login or self.broadcaster_id}")
        return sent

    # ---- inbound ----
    async def handle_frame(self, frame: EventSubFrame) -> None:
        """React to one EventSub frame."""
        if frame.message_type == SESSION_KEEPALIVE:
            logging.debug("💓 EventSub keepalive")
        elif frame.message_type == NOTIFICATION:
            event = parse_chat_event(frame)
            if event is not None:
                await self.handle_chat_event(event)
        elif frame.message_type == SESSION_RECONNECT:
            await self._follow_reconnect(frame.reconnect_url)
        elif frame.message_type == REVOCATION:
            reason = revocation_reason(frame)
            logging.warning(f"🚫 Chat subscription revoked reason={reason}")
            self._subscription_id = None
            await self._teardown()
            if reason in AUTH_REVOCATION_REASONS:
                self._mark_reauth_required()
            else:
                self._state.transition(ConnectionState.DISCONNECTED)
        else:
            logging.debug(f"🧪 Ignoring EventSub frame type={frame.message_type}")

    async def handle_chat_event(self, event: ChatEvent) -> None:
        """Dispatch a chat message to the commands and reply with the result."""
        if self.bot_id and event.chatter_user_id == self.bot_id:
            return
        if not self._commands_enabled or self._dispatcher is None:
            return
        response = self._dispatcher.process_message(event.text)
        if not response:
            return
        logging.info(f"🎵 Answering {event.chatter_user_login} in {event.broadcaster_user_login}")
        await self.send_message(response, reply_to=event.message_id or None)

    # ---- internal helpers ----
    def _ensure_not_busy(self) -> None:
        if self._connect_lock.locked():
            raise ConnectionBusyError("A chat connection attempt is already in progress")

    async def _leave_if_active(self) -> None:
        if self._connector is not None or self._listen_task is not None:
            await self.leave_channel()

    async def _resolve_bot(self, token: str) -> tuple[str, str]:
        try:
            payload = await self._api.validate_token(token)
        except InternalError as e:
            self._fail()
            raise ChatConnectionError(f"Token validation failed: {str(e)}") from e
        if payload is None:
            self._mark_reauth_required()
            raise AuthError("Twitch rejected the OAuth token")
        self._reauth_pending = False
        user_id = payload.get("user_id")
        login = payload.get("login")
        if not isinstance(user_id, str) or not user_id:
            self._fail()
            raise ChatConnectionError("Token validation returned no user_id")
        return user_id, login if isinstance(login, str) else ""

    async def _resolve_channel(self, channel_name: str, token: str, client_id: str) -> str:
        login = channel_name.strip().lstrip("#").lower()
        if not login:
            self._fail()
            raise ChatConnectionError("Channel name is empty")
        try:
            ids = await self._api.get_users_by_login(
                access_token=token, client_id=client_id, logins=[login]
            )
        except AuthError:
            self._mark_reauth_required()
            raise
        except InternalError as e:
            self._fail()
            raise ChatConnectionError(f"Could not resolve channel {login}: {str(e)}") from e
        broadcaster_id = ids.get(login)
        if not broadcaster_id:
            self._fail()
            raise ChatConnectionError(f"Channel not found: {login}", data={"channel": login})
        return broadcaster_id

    async def _join(self, broadcaster_id: str, bot_id: str, token: str, client_id: str) -> None:
        connector = self._connector_factory()
        try:
            welcome = await connector.connect()
            session_id = welcome.session_id
            if not session_id:
                raise ProtocolError("EventSub welcome without session id")
            subscription_id = await self._api.create_chat_subscription(
                access_token=token,
                client_id=client_id,
                session_id=session_id,
                broadcaster_id=broadcaster_id,
                user_id=bot_id,
            )
        except AuthError:
            await connector.close()
            self._mark_reauth_required()
            raise
        except ChatConnectionError:
            await connector.close()
            self._fail()
            raise
        except InternalError as e:
            await connector.close()
            self._fail()
            raise ChatConnectionError(f"Failed to join chat: {str(e)}") from e

        self._connector = connector
        self._subscription_id = subscription_id
        self._token = token
        self._client_id = client_id
        self.broadcaster_id = broadcaster_id
        self.bot_id = bot_id
        self._reauth_pending = False
        self._state.transition(ConnectionState.CONNECTED)
        self._listen_task = asyncio.create_task(self._listen(), name="wolfwave-chat-listen")

    async def _listen(self) -> None:
        while self._connector is not None:
            connector = self._connector
            try:
                frame = await connector.receive()
            except ProtocolError as e:
                log_error("Dropping malformed EventSub frame", e)
                continue
            except ChatConnectionError as e:
                if connector is not self._connector:
                    # Superseded by a session_reconnect hand-over
                    continue
                log_error("EventSub connection dropped", e)
                if not await self._recover():
                    return
                continue
            if connector is not self._connector:
                continue
            if frame is None:
                logging.info("🔌 EventSub socket closed")
                await self._teardown()
                self._fail()
                return
            await self.handle_frame(frame)

    async def _follow_reconnect(self, url: str | None) -> None:
        if not url:
            logging.warning("⚠️ session_reconnect without reconnect_url")
            return
        replacement = self._connector_factory()
        try:
            await replacement.connect(url)
        except InternalError as e:
            # The old socket stays up until Twitch drops it; recovery handles that
            log_error("EventSub reconnect hand-over failed", e)
            return
        previous = self._connector
        self._connector = replacement
        if previous is not None:
            await previous.close()
        logging.info("🔁 EventSub session moved to reconnect_url")

    async def _recover(self) -> bool:
        """Rebuild the socket and subscription after an abnormal close."""
        previous = self._connector
        self._connector = None
        self._subscription_id = None
        if previous is not None:
            await previous.close()
        if not (self._token and self._client_id and self.broadcaster_id and self.bot_id):
            self._fail()
            return False
        self._state.transition(ConnectionState.CONNECTING)
        token, client_id = self._token, self._client_id
        broadcaster_id, bot_id = self.broadcaster_id, self.bot_id

        async def attempt(attempt_number: int) -> tuple[tuple[WebSocketConnector, str] | None, bool]:
            logging.info(f"🔄 Restoring chat connection attempt={attempt_number + 1}")
            connector = self._connector_factory()
            welcome = await connector.connect()
            try:
                subscription_id = await self._api.create_chat_subscription(
                    access_token=token,
                    client_id=client_id,
                    session_id=welcome.session_id or "",
                    broadcaster_id=broadcaster_id,
                    user_id=bot_id,
                )
            except BaseException:
                await connector.close()
                raise
            return (connector, subscription_id), False

        try:
            connector, subscription_id = await retry_async(
                attempt, max_attempts=EVENTSUB_RECONNECT_MAX_ATTEMPTS, max_wait=30.0
            )
        except RetryExhaustedError as e:
            if isinstance(e.final_exception, AuthError):
                self._mark_reauth_required()
            else:
                log_error("Chat connection could not be restored", e)
                self._fail()
            return False
        self._connector = connector
        self._subscription_id = subscription_id
        self._state.transition(ConnectionState.CONNECTED)
        return True

    async def _teardown(self) -> None:
        connector = self._connector
        subscription_id = self._subscription_id
        self._connector = None
        self._subscription_id = None
        if subscription_id and self._token and self._client_id:
            try:
                await self._api.delete_subscription(
                    access_token=self._token,
                    client_id=self._client_id,
                    subscription_id=subscription_id,
                )
            except InternalError as e:
                logging.debug(f"🧹 Subscription cleanup skipped: {str(e)}")
        if connector is not None:
            await connector.close()

    def _fail(self) -> None:
        if self._reauth_pending:
            self._state.transition(ConnectionState.REAUTH_REQUIRED)
        else:
            self._state.transition(ConnectionState.DISCONNECTED)

    def _mark_reauth_required(self) -> None:
        self._reauth_pending = True
        self._state.transition(ConnectionState.REAUTH_REQUIRED)
        self._settings.try_update(reauth_needed=True)
        logging.warning("🔐 Twitch token rejected, re-authorization required")
