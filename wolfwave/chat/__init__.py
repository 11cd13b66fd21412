"""Twitch chat connection package."""

from .connection_state import ConnectionObserver, ConnectionState, ConnectionStateManager
from .message_processor import ChatEvent, EventSubFrame, parse_chat_event, parse_frame
from .service import TwitchChatService
from .websocket_connector import WebSocketConnector

__all__ = [
    "ChatEvent",
    "ConnectionObserver",
    "ConnectionState",
    "ConnectionStateManager",
    "EventSubFrame",
    "TwitchChatService",
    "WebSocketConnector",
    "parse_chat_event",
    "parse_frame",
]
