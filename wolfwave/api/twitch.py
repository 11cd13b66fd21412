"""Thin asynchronous Twitch Helix API client.

Wraps only the endpoints the chat bot needs. If new endpoints are needed,
prefer adding focused methods instead of sprinkling raw request logic across
modules.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..auth_token.types import BotIdentity
from ..constants import EVENTSUB_CHAT_MESSAGE, HELIX_BASE_URL, VALIDATE_URL
from ..errors.internal import AuthError, NetworkError, ProtocolError

EVENTSUB_SUBSCRIPTIONS = "eventsub/subscriptions"
CHAT_MESSAGES = "chat/messages"
USERS = "users"
USERS_BATCH_SIZE = 100


class TwitchAPI:
    """Asynchronous client for Twitch Helix API endpoints.

    Attributes:
        BASE_URL (str): The base URL for Twitch Helix API.
    """

    BASE_URL = HELIX_BASE_URL

    def __init__(self, session: aiohttp.ClientSession):
        """Initialize the TwitchAPI client.

        Args:
            session (aiohttp.ClientSession): The aiohttp session to use for requests.

        Raises:
            ValueError: If session is not provided.
        """
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        access_token: str,
        client_id: str,
        params: dict[str, Any] | list[tuple[str, str]] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> tuple[dict[str, Any], int]:
        """Perform a raw HTTP request to the Twitch Helix API.

        Args:
            method (str): HTTP method (e.g., 'GET', 'POST').
            endpoint (str): API endpoint path (without base URL).
            access_token (str): OAuth access token for authorization.
            client_id (str): Twitch application client ID.
            params: Query parameters for the request.
            json_body (dict[str, Any] | None): JSON body for the request.

        Returns:
            tuple[dict[str, Any], int]: The JSON response data (empty when the
            body is absent or not an object) and the HTTP status code.

        Raises:
            NetworkError: If the request cannot be completed.
        """
        url = f"{self.BASE_URL}/{endpoint}"
        try:
            async with self._session.request(
                method,
                url,
                headers=self._auth_headers(access_token, client_id),
                params=params,
                json=json_body,
            ) as resp:
                logging.debug(
                    f"Twitch API response: status={resp.status}, method={method}, endpoint={endpoint}"
                )
                if resp.status == 204:
                    # 204 No Content has no body
                    return {}, resp.status
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = {}
                return (data if isinstance(data, dict) else {}), resp.status
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            raise NetworkError(
                f"Twitch API {method} {endpoint} failed: {type(e).__name__} {str(e)}",
                data={"endpoint": endpoint},
            ) from e

    # ---- High level helpers ----
    async def validate_token(self, access_token: str) -> dict[str, Any] | None:
        """Validate an OAuth access token using Twitch's validation endpoint.

        Args:
            access_token (str): The OAuth access token to validate.

        Returns:
            dict[str, Any] | None: Validation payload if valid, None if Twitch
            rejected the token.

        Raises:
            NetworkError: If the request cannot be completed.
            ProtocolError: If Twitch answers with an unexpected status or body.
        """
        headers = {"Authorization": f"OAuth {access_token}"}
        try:
            async with self._session.get(VALIDATE_URL, headers=headers) as resp:
                if resp.status == 401:
                    return None
                if resp.status != 200:
                    raise ProtocolError(
                        f"Unexpected token validation status {resp.status}",
                        data={"status": resp.status},
                    )
                try:
                    data = await resp.json(content_type=None)
                except ValueError as e:
                    raise ProtocolError("Token validation returned invalid JSON") from e
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            raise NetworkError(
                f"Token validation failed: {type(e).__name__} {str(e)}"
            ) from e
        if not isinstance(data, dict):
            raise ProtocolError("Token validation returned a non-object body")
        return data

    async def get_users_by_login(
        self, *, access_token: str, client_id: str, logins: list[str]
    ) -> dict[str, str]:
        """Resolve Twitch login names to user IDs.

        Args:
            access_token (str): OAuth access token.
            client_id (str): Twitch application client ID.
            logins (list[str]): List of login names to resolve.

        Returns:
            dict[str, str]: Mapping of lowercase login names to user IDs.
            Unknown logins are omitted.

        Raises:
            AuthError: If Twitch rejects the token.
            ProtocolError: If Twitch answers with an unexpected status.
            NetworkError: If the request cannot be completed.
        """
        wanted = self._normalize_logins(logins)
        resolved: dict[str, str] = {}
        for offset in range(0, len(wanted), USERS_BATCH_SIZE):
            batch = wanted[offset : offset + USERS_BATCH_SIZE]
            data, status = await self.request(
                "GET",
                USERS,
                access_token=access_token,
                client_id=client_id,
                params=[("login", name) for name in batch],
            )
            self._raise_for_status(status, "get users")
            for row in self._rows(data):
                name, user_id = row.get("login"), row.get("id")
                if isinstance(name, str) and isinstance(user_id, str):
                    resolved[name.lower()] = user_id
        logging.debug(f"📋 Twitch API resolved {len(resolved)} of {len(wanted)} logins")
        return resolved

    async def get_token_user(self, *, access_token: str, client_id: str) -> BotIdentity:
        """Return the identity of the account that owns ``access_token``.

        Raises:
            AuthError: If Twitch rejects the token.
            ProtocolError: If the response carries no user.
            NetworkError: If the request cannot be completed.
        """
        data, status = await self.request(
            "GET", USERS, access_token=access_token, client_id=client_id
        )
        self._raise_for_status(status, "get token user")
        for entry in self._rows(data):
            uid = entry.get("id")
            login = entry.get("login")
            if isinstance(uid, str) and isinstance(login, str):
                return BotIdentity(user_id=uid, login=login)
        raise ProtocolError("Token user lookup returned no user")

    async def create_chat_subscription(
        self,
        *,
        access_token: str,
        client_id: str,
        session_id: str,
        broadcaster_id: str,
        user_id: str,
    ) -> str:
        """Subscribe the WebSocket session to channel.chat.message events.

        Returns:
            str: The subscription ID.

        Raises:
            AuthError: If Twitch rejects the token.
            ProtocolError: If the subscription is refused or malformed.
            NetworkError: If the request cannot be completed.
        """
        body = {
            "type": EVENTSUB_CHAT_MESSAGE,
            "version": "1",
            "condition": {"broadcaster_user_id": broadcaster_id, "user_id": user_id},
            "transport": {"method": "websocket", "session_id": session_id},
        }
        data, status = await self.request(
            "POST",
            EVENTSUB_SUBSCRIPTIONS,
            access_token=access_token,
            client_id=client_id,
            json_body=body,
        )
        if status == 409:
            raise ProtocolError(
                "Chat subscription already exists for this session",
                data={"status": status, "broadcaster_id": broadcaster_id},
            )
        self._raise_for_status(status, "create subscription", data)
        for entry in self._rows(data):
            sub_id = entry.get("id")
            if isinstance(sub_id, str):
                return sub_id
        raise ProtocolError("Subscription response missing id")

    async def delete_subscription(
        self, *, access_token: str, client_id: str, subscription_id: str
    ) -> bool:
        """Delete an EventSub subscription.

        Returns:
            bool: True when deleted or already gone.
        """
        _, status = await self.request(
            "DELETE",
            EVENTSUB_SUBSCRIPTIONS,
            access_token=access_token,
            client_id=client_id,
            params={"id": subscription_id},
        )
        return status in (204, 404)

    async def send_chat_message(
        self,
        *,
        access_token: str,
        client_id: str,
        broadcaster_id: str,
        sender_id: str,
        message: str,
        reply_parent_message_id: str | None = None,
    ) -> bool:
        """Post a chat message.

        Returns:
            bool: True when Twitch accepted and sent the message.

        Raises:
            AuthError: If Twitch rejects the token.
            ProtocolError: If Twitch answers with an unexpected status.
            NetworkError: If the request cannot be completed.
        """
        body: dict[str, Any] = {
            "broadcaster_id": broadcaster_id,
            "sender_id": sender_id,
            "message": message,
        }
        if reply_parent_message_id:
            body["reply_parent_message_id"] = reply_parent_message_id
        data, status = await self.request(
            "POST",
            CHAT_MESSAGES,
            access_token=access_token,
            client_id=client_id,
            json_body=body,
        )
        self._raise_for_status(status, "send chat message", data)
        for entry in self._rows(data):
            if entry.get("is_sent") is True:
                return True
            drop = entry.get("drop_reason")
            if drop:
                logging.warning(f"⚠️ Chat message dropped by Twitch: {drop}")
        return False

    # ---- internal helpers ----
    @staticmethod
    def _raise_for_status(
        status: int, operation: str, data: dict[str, Any] | None = None
    ) -> None:
        if status == 401:
            raise AuthError(
                f"Twitch rejected the token during {operation}",
                data={"status": status},
            )
        if not 200 <= status < 300:
            message = (data or {}).get("message", "")
            raise ProtocolError(
                f"Twitch API {operation} failed with HTTP {status} {message}".rstrip(),
                data={"status": status},
            )

    @staticmethod
    def _normalize_logins(logins: list[str]) -> list[str]:
        """Lowercase, drop '#' prefixes and blanks, keep first-seen order."""
        cleaned = (raw.strip().lstrip("#").lower() for raw in logins)
        return list(dict.fromkeys(name for name in cleaned if name))

    @staticmethod
    def _auth_headers(access_token: str, client_id: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Client-Id": client_id,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _rows(data: dict[str, Any]) -> list[dict[str, Any]]:
        rows = data.get("data")
        if isinstance(rows, list):
            return [r for r in rows if isinstance(r, dict)]
        return []
