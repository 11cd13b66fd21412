"""Parsing of EventSub WebSocket frames.

Frames arrive as JSON objects with a ``metadata`` block (``message_type``,
``subscription_type``) and a ``payload``. Only the pieces the chat service
acts on are modelled here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from ..constants import EVENTSUB_CHAT_MESSAGE
from ..errors.internal import ProtocolError

# EventSub message types
SESSION_WELCOME = "session_welcome"
SESSION_KEEPALIVE = "session_keepalive"
SESSION_RECONNECT = "session_reconnect"
NOTIFICATION = "notification"
REVOCATION = "revocation"

# Revocation reasons that mean the token or bot account lost access
AUTH_REVOCATION_REASONS = frozenset({"authorization_revoked", "user_removed"})


@dataclass(frozen=True)
class EventSubFrame:
    """A decoded EventSub WebSocket frame."""

    message_type: str
    message_id: str | None = None
    subscription_type: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def session(self) -> dict[str, Any]:
        session = self.payload.get("session")
        return session if isinstance(session, dict) else {}

    @property
    def session_id(self) -> str | None:
        value = self.session.get("id")
        return value if isinstance(value, str) else None

    @property
    def reconnect_url(self) -> str | None:
        value = self.session.get("reconnect_url")
        return value if isinstance(value, str) and value else None

    @property
    def subscription(self) -> dict[str, Any]:
        sub = self.payload.get("subscription")
        return sub if isinstance(sub, dict) else {}


@dataclass(frozen=True)
class ChatEvent:
    """A chat message received through a channel.chat.message notification."""

    message_id: str
    broadcaster_user_id: str
    broadcaster_user_login: str
    chatter_user_id: str
    chatter_user_login: str
    text: str


def parse_frame(raw: str | bytes) -> EventSubFrame:
    """Decode a raw WebSocket frame.

    Raises:
        ProtocolError: If the frame is not JSON or lacks a message type.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid EventSub frame: {str(e)}") from e
    if not isinstance(data, dict):
        raise ProtocolError("EventSub frame is not an object")
    metadata = data.get("metadata")
    if not isinstance(metadata, dict) or not isinstance(
        metadata.get("message_type"), str
    ):
        raise ProtocolError("EventSub frame missing metadata.message_type")
    payload = data.get("payload")
    return EventSubFrame(
        message_type=metadata["message_type"],
        message_id=metadata.get("message_id"),
        subscription_type=metadata.get("subscription_type"),
        payload=payload if isinstance(payload, dict) else {},
    )


def parse_chat_event(frame: EventSubFrame) -> ChatEvent | None:
    """Extract a ChatEvent from a chat notification frame.

    Returns None for any other frame or for an event without text.
    """
    if frame.message_type != NOTIFICATION:
        return None
    if frame.subscription_type != EVENTSUB_CHAT_MESSAGE:
        return None
    event = frame.payload.get("event")
    if not isinstance(event, dict):
        return None
    message = event.get("message")
    text = message.get("text") if isinstance(message, dict) else None
    if not isinstance(text, str):
        return None
    return ChatEvent(
        message_id=str(event.get("message_id", "")),
        broadcaster_user_id=str(event.get("broadcaster_user_id", "")),
        broadcaster_user_login=str(event.get("broadcaster_user_login", "")),
        chatter_user_id=str(event.get("chatter_user_id", "")),
        chatter_user_login=str(event.get("chatter_user_login", "")),
        text=text,
    )


def revocation_reason(frame: EventSubFrame) -> str | None:
    if frame.message_type != REVOCATION:
        return None
    status = frame.subscription.get("status")
    return status if isinstance(status, str) else "unknown"
