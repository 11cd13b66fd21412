from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import AUTO_JOIN_DELAY_SECONDS


class AppSettings(BaseModel):
    """Non-secret persisted preferences.

    Secrets (tokens, channel, bot identity) never live here; they belong to
    the secret store.

    Attributes:
        commands_enabled: Whether chat commands are answered.
        reauth_needed: Set when the stored Twitch token was rejected.
        auto_join_delay: Seconds to wait before auto-joining on startup.
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    commands_enabled: bool = True
    reauth_needed: bool = False
    auto_join_delay: float = Field(default=AUTO_JOIN_DELAY_SECONDS, ge=0)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppSettings:
        """Create AppSettings from a dictionary, ignoring unknown keys.

        Args:
            data: Dictionary containing settings data.

        Returns:
            AppSettings instance.
        """
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
