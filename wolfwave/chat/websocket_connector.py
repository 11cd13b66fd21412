"""WebSocket connector for the Twitch EventSub transport."""

from __future__ import annotations

import asyncio
import logging

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, WebSocketException

from ..constants import EVENTSUB_WELCOME_TIMEOUT_SECONDS, EVENTSUB_WS_URL
from ..errors.internal import ChatConnectionError, ProtocolError
from .message_processor import SESSION_KEEPALIVE, SESSION_WELCOME, EventSubFrame, parse_frame


class WebSocketConnector:
    """Owns one EventSub WebSocket connection.

    Attributes:
        ws_url (str): URL of the current (or last) connection.
        ws (ClientConnection | None): Active WebSocket connection.
        session_id (str | None): EventSub session ID from the welcome frame.
    """

    def __init__(
        self,
        ws_url: str = EVENTSUB_WS_URL,
        welcome_timeout: float = EVENTSUB_WELCOME_TIMEOUT_SECONDS,
    ) -> None:
        self.ws_url = ws_url
        self.welcome_timeout = welcome_timeout
        self.ws: ClientConnection | None = None
        self.session_id: str | None = None

    async def connect(self, url: str | None = None) -> EventSubFrame:
        """Open the socket and wait for ``session_welcome``.

        Args:
            url: Alternative URL, used for ``session_reconnect`` hand-over.

        Returns:
            The welcome frame.

        Raises:
            ChatConnectionError: If the socket cannot be opened or no welcome
                arrives in time.
        """
        if url:
            self.ws_url = url
        logging.info(f"🔌 Connecting to EventSub at {self.ws_url}")
        await self.close()
        try:
            self.ws = await connect(self.ws_url, ping_interval=None)
        except (OSError, TimeoutError, WebSocketException) as e:
            raise ChatConnectionError(
                f"WebSocket connection failed: {type(e).__name__} {str(e)}",
                data={"url": self.ws_url},
            ) from e
        try:
            welcome = await asyncio.wait_for(
                self._await_welcome(), timeout=self.welcome_timeout
            )
        except TimeoutError as e:
            await self.close()
            raise ChatConnectionError(
                f"No session_welcome within {self.welcome_timeout}s"
            ) from e
        except (ChatConnectionError, ProtocolError):
            await self.close()
            raise
        self.session_id = welcome.session_id
        logging.info(f"🤝 EventSub session established session_id={self.session_id}")
        return welcome

    async def receive(self) -> EventSubFrame | None:
        """Read the next frame.

        Returns:
            The decoded frame, or None when the socket closed normally.

        Raises:
            ChatConnectionError: If the socket closed abnormally.
            ProtocolError: If the frame could not be decoded.
        """
        if self.ws is None:
            return None
        try:
            raw = await self.ws.recv()
        except ConnectionClosedOK:
            return None
        except ConnectionClosedError as e:
            code = e.rcvd.code if e.rcvd else None
            reason = e.rcvd.reason if e.rcvd else ""
            raise ChatConnectionError(
                f"EventSub socket closed abnormally code={code} reason={reason}",
                data={"code": code},
            ) from e
        return parse_frame(raw)

    async def close(self) -> None:
        """Close the socket if open. Safe to call repeatedly."""
        ws = self.ws
        self.ws = None
        self.session_id = None
        if ws is None:
            return
        try:
            await ws.close(code=1000)
            logging.info(f"🔌 WebSocket disconnected code={ws.close_code}")
        except (OSError, WebSocketException) as e:
            logging.warning(f"⚠️ WebSocket close error: {str(e)}")

    async def _await_welcome(self) -> EventSubFrame:
        while True:
            frame = await self.receive()
            if frame is None:
                raise ChatConnectionError("Socket closed before session_welcome")
            if frame.message_type == SESSION_WELCOME:
                if not frame.session_id:
                    raise ProtocolError("session_welcome without session id")
                return frame
            if frame.message_type != SESSION_KEEPALIVE:
                logging.debug(
                    f"🧪 Ignoring frame before welcome type={frame.message_type}"
                )
