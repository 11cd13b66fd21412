"""Single-active-attempt coordinator around the device code flow."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import aiohttp

from ..api.twitch import TwitchAPI
from ..config.core import resolve_client_id
from ..config.repository import SettingsRepository
from ..constants import DEFAULT_SCOPES
from ..errors.handling import log_error
from ..errors.internal import (
    AccessDenied,
    ConfigurationError,
    ExpiredToken,
    InternalError,
    InvalidClient,
    NetworkError,
)
from ..storage.secret_store import CredentialStore
from ..utils import format_duration
from .device_flow import CancelToken, DeviceCodeFlow, StatusCallback
from .types import DeviceCodeState

CodeCallback = Callable[[DeviceCodeState], None]


def describe_failure(error: Exception) -> str:
    """Human-readable status line for a failed authorization attempt."""
    if isinstance(error, AccessDenied):
        return "Authorization was denied on Twitch"
    if isinstance(error, ExpiredToken):
        return "The code expired before it was entered, start again"
    if isinstance(error, InvalidClient):
        return "Twitch does not recognise the configured Client ID"
    if isinstance(error, ConfigurationError):
        return str(error)
    if isinstance(error, NetworkError):
        return "Could not reach Twitch, check the network connection"
    return f"Authorization failed: {str(error)}"


class DeviceAuthorizer:
    """Runs device authorization attempts, at most one at a time.

    A successful attempt stores the token, clears the re-authentication flag
    and records the bot identity the token belongs to.
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession,
        credentials: CredentialStore,
        settings: SettingsRepository,
        client_id_provider: Callable[[], str | None] = resolve_client_id,
        scopes: Iterable[str] = DEFAULT_SCOPES,
    ) -> None:
        self._session = session
        self._credentials = credentials
        self._settings = settings
        self._client_id_provider = client_id_provider
        self._scopes = tuple(scopes)
        self._api = TwitchAPI(session)
        self._task: asyncio.Task[str] | None = None
        self._cancel_token: CancelToken | None = None
        self._start_lock = asyncio.Lock()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(
        self, on_code: CodeCallback, on_status: StatusCallback | None = None
    ) -> asyncio.Task[str]:
        """Start a new attempt, cancelling any attempt still in flight.

        Args:
            on_code: Receives the device code state to show the user.
            on_status: Receives progress and failure messages.

        Returns:
            The task running the attempt; it resolves to the access token.
        """
        async with self._start_lock:
            await self.cancel()
            cancel_token = CancelToken()
            self._cancel_token = cancel_token
            task = asyncio.create_task(
                self._run(on_code, on_status, cancel_token), name="wolfwave-device-auth"
            )
            self._task = task
        return task

    async def cancel(self) -> None:
        """Cancel the active attempt, if any, and wait for it to finish."""
        task = self._task
        if task is None or task.done():
            return
        if self._cancel_token is not None:
            self._cancel_token.cancel()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logging.info("🛑 Device authorization cancelled")

    async def _run(
        self,
        on_code: CodeCallback,
        on_status: StatusCallback | None,
        cancel_token: CancelToken,
    ) -> str:
        def report(message: str) -> None:
            if on_status is not None and not cancel_token.cancelled:
                on_status(message)

        try:
            client_id = self._client_id_provider()
            if not client_id:
                raise ConfigurationError(
                    "Missing Twitch Client ID. Set TWITCH_CLIENT_ID before authorizing."
                )
            flow = DeviceCodeFlow(client_id, self._session, self._scopes)
            state = await flow.request_device_code()
            cancel_token.raise_if_cancelled()
            logging.info(
                f"🔗 Open {state.verification_uri} and enter code {state.user_code} (expires in {format_duration((state.expires_at - datetime.now(UTC)).total_seconds())})"
            )
            on_code(state)
            token = await flow.poll_for_token(
                state.device_code,
                state.interval,
                report,
                cancel_token,
                state.expires_at,
            )
        except asyncio.CancelledError:
            logging.debug("🛑 Device authorization attempt stopped")
            raise
        except InternalError as e:
            log_error("Device authorization failed", e)
            report(describe_failure(e))
            raise

        self._credentials.save_twitch_token(token)
        self._settings.try_update(reauth_needed=False)
        await self._store_identity(token, client_id, report)
        report("Authorized")
        return token

    async def _store_identity(
        self, token: str, client_id: str, report: StatusCallback
    ) -> None:
        try:
            identity = await self._api.get_token_user(
                access_token=token, client_id=client_id
            )
        except InternalError as e:
            log_error("Bot identity lookup failed", e)
            report("Authorized, but the bot account could not be identified")
            return
        self._credentials.save_twitch_username(identity.login)
        self._credentials.save_twitch_bot_user_id(identity.user_id)
        logging.info(f"🤖 Authorized as {identity.login} user_id={identity.user_id}")
