from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors.handling import log_error
from .model import AppSettings


class SettingsRepository:
    """Repository for the JSON settings file.

    Loads settings tolerantly (missing or corrupt file yields defaults) and
    writes atomically through a temp file in the same directory.
    """

    def __init__(self, path: str | os.PathLike[str]):
        """Initialize the SettingsRepository.

        Args:
            path: Path to the settings file.
        """
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = str(path)
        self._cached: AppSettings | None = None

    def load(self) -> AppSettings:
        """Load settings from disk.

        Returns:
            The stored settings, or defaults when the file is absent or invalid.
        """
        if self._cached is not None:
            return self._cached.model_copy()
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return AppSettings()
        except (OSError, ValueError) as e:
            logging.error(f"💥 Settings load error: {e}")
            return AppSettings()
        if not isinstance(data, dict):
            logging.warning(f"⚠️ Ignoring settings file with unexpected shape path={self.path}")
            return AppSettings()
        try:
            settings = AppSettings.from_dict(data)
        except ValidationError as e:
            logging.warning(f"⚠️ Invalid settings, using defaults: {e.error_count()} error(s)")
            return AppSettings()
        self._cached = settings
        return settings.model_copy()

    def save(self, settings: AppSettings) -> None:
        """Persist settings atomically.

        Args:
            settings: The settings to write.
        """
        self._prepare_dir()
        self._atomic_write(settings.to_dict())
        self._cached = settings.model_copy()
        logging.debug(f"💾 Settings saved path={self.path}")

    def update(self, **changes: Any) -> AppSettings:
        """Apply field changes to the stored settings and persist them.

        Returns:
            The updated settings.
        """
        current = self.load()
        updated = AppSettings.from_dict({**current.to_dict(), **changes})
        if updated != current:
            self.save(updated)
        return updated

    def try_update(self, **changes: Any) -> bool:
        """Like ``update``, but a failed write is logged instead of raised.

        The new values stay in effect for this process either way.

        Returns:
            True when the change reached the settings file.
        """
        try:
            self.update(**changes)
        except OSError as e:
            log_error("Settings could not be saved", e, {"path": self.path})
            current = self.load()
            self._cached = AppSettings.from_dict({**current.to_dict(), **changes})
            return False
        return True

    def _prepare_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _atomic_write(self, payload: dict[str, Any]) -> None:
        directory = str(Path(self.path).parent)
        fd, tmp_path = tempfile.mkstemp(prefix=".settings.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(payload, tmp, indent=2, sort_keys=True)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise
