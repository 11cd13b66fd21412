"""User-facing notifications."""

from __future__ import annotations

import logging
from typing import Protocol

AUTH_EXPIRED_TITLE = "Twitch Authentication Expired"
CONFIGURATION_ERROR_TITLE = "Twitch Configuration Error"
CONNECTION_FAILED_TITLE = "Twitch Connection Failed"


class Notifier(Protocol):
    """Shows a short title + message to the user."""

    def notify(self, title: str, message: str) -> None: ...


class LogNotifier:
    """Notifier that writes notifications to the log."""

    def notify(self, title: str, message: str) -> None:
        logging.warning(f"🔔 {title}: {message}")


def safe_notify(notifier: Notifier | None, title: str, message: str) -> None:
    """Deliver a notification, logging instead of raising on failure."""
    if notifier is None:
        return
    try:
        notifier.notify(title, message)
    except Exception as e:  # noqa: BLE001
        logging.warning(f"⚠️ Notification failed title={title}: {type(e).__name__} {str(e)}")
