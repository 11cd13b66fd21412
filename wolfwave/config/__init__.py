"""Configuration package exports."""

from .core import resolve_client_id, settings_path
from .model import AppSettings
from .repository import SettingsRepository

__all__ = [
    "AppSettings",
    "SettingsRepository",
    "resolve_client_id",
    "settings_path",
]
