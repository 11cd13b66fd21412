"""Connection state tracking with observer notification."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol


class ConnectionState(Enum):
    """Enumeration of chat connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    REAUTH_REQUIRED = "reauth_required"


class ConnectionObserver(Protocol):
    """Receives every connection state transition."""

    def on_connection_state_changed(
        self, old: ConnectionState, new: ConnectionState
    ) -> None: ...


class ConnectionStateManager:
    """Holds the current state and fans transitions out to observers.

    Observers are called synchronously in registration order; an observer
    that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._observers: list[ConnectionObserver] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def add_observer(self, observer: ConnectionObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: ConnectionObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def transition(self, new: ConnectionState) -> bool:
        """Move to ``new`` and notify observers.

        Returns:
            bool: False when already in ``new`` (observers are not called).
        """
        old = self._state
        if old is new:
            return False
        self._state = new
        logging.info(f"🔄 Chat connection {old.value} -> {new.value}")
        for observer in list(self._observers):
            try:
                observer.on_connection_state_changed(old, new)
            except Exception as e:  # noqa: BLE001
                logging.warning(
                    f"⚠️ Connection observer failed: {type(e).__name__} {str(e)}"
                )
        return True
