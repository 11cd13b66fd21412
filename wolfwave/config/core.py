"""Environment-driven configuration lookups."""

from __future__ import annotations

import os
from pathlib import Path

from ..constants import CLIENT_ID_ENV, SETTINGS_FILE_ENV

DEFAULT_SETTINGS_PATH = Path("~/.config/wolfwave/settings.json")


def resolve_client_id() -> str | None:
    """Return the Twitch client ID from the environment, or None if unset."""
    value = os.environ.get(CLIENT_ID_ENV, "").strip()
    return value or None


def settings_path() -> Path:
    """Location of the settings file, overridable through the environment."""
    override = os.environ.get(SETTINGS_FILE_ENV)
    if override:
        return Path(override).expanduser()
    return DEFAULT_SETTINGS_PATH.expanduser()
