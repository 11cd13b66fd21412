"""Value types shared by the authorization and chat layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from ..constants import DEVICE_FLOW_DEFAULT_EXPIRES_IN, DEVICE_FLOW_DEFAULT_INTERVAL
from ..errors.internal import ProtocolError


@dataclass(frozen=True)
class DeviceCodeState:
    """Result of a device-code request, valid for a single attempt."""

    device_code: str
    user_code: str
    verification_uri: str
    interval: int
    expires_at: datetime

    @classmethod
    def from_response(
        cls, payload: dict[str, Any], now: datetime | None = None
    ) -> DeviceCodeState:
        """Build the state from Twitch's device endpoint response.

        Raises:
            ProtocolError: If a required field is missing or has the wrong type.
        """
        missing = [
            key
            for key in ("device_code", "user_code", "verification_uri")
            if not isinstance(payload.get(key), str) or not payload.get(key)
        ]
        if missing:
            raise ProtocolError(
                f"Device code response missing fields: {', '.join(missing)}",
                data={"missing": missing},
            )
        try:
            interval = int(payload.get("interval", DEVICE_FLOW_DEFAULT_INTERVAL))
            expires_in = int(payload.get("expires_in", DEVICE_FLOW_DEFAULT_EXPIRES_IN))
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Device code response has invalid timing: {e}") from e
        issued = now or datetime.now(UTC)
        return cls(
            device_code=payload["device_code"],
            user_code=payload["user_code"],
            verification_uri=payload["verification_uri"],
            interval=max(interval, 1),
            expires_at=issued + timedelta(seconds=expires_in),
        )


@dataclass(frozen=True)
class TwitchCredentials:
    """Twitch secrets as loaded from the secret store.

    Token and channel are independently optional; a connection needs both
    plus a configured client ID.
    """

    oauth_token: str | None = None
    bot_username: str | None = None
    bot_user_id: str | None = None
    channel_id: str | None = None

    def can_connect(self, client_id: str | None) -> bool:
        return bool(self.oauth_token and self.channel_id and client_id)


@dataclass(frozen=True)
class BotIdentity:
    """The account the OAuth token belongs to."""

    user_id: str
    login: str
