"""Device Code Flow implementation for interactive Twitch authorization"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

import aiohttp

from ..constants import (
    DEFAULT_SCOPES,
    DEVICE_CODE_URL,
    DEVICE_FLOW_SLOW_DOWN_INCREMENT,
    DEVICE_GRANT_TYPE,
    TOKEN_URL,
)
from ..errors.internal import (
    AccessDenied,
    AuthorizationPending,
    DeviceAuthError,
    ExpiredToken,
    InvalidClient,
    NetworkError,
    ProtocolError,
    SlowDown,
    UnknownDeviceAuthError,
)
from ..utils import format_duration
from .types import DeviceCodeState

StatusCallback = Callable[[str], None]

WAITING_STATUS = "Waiting for authorization…"

_ERRORS_BY_CODE: dict[str, type[DeviceAuthError]] = {
    cls.code: cls
    for cls in (AuthorizationPending, SlowDown, AccessDenied, ExpiredToken, InvalidClient)
}


class CancelToken:
    """Cooperative cancellation signal shared between a caller and a poll loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise asyncio.CancelledError()

    async def wait(self) -> None:
        await self._event.wait()


async def _wait_interval(seconds: float, cancel_token: CancelToken | None) -> None:
    """Sleep for ``seconds``, returning early when the token is cancelled."""
    if cancel_token is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(cancel_token.wait(), timeout=seconds)
    except TimeoutError:
        return


def _error_code(payload: dict[str, Any]) -> str:
    # Twitch reports the error code in 'message', the RFC uses 'error'
    raw = payload.get("message") or payload.get("error") or ""
    return str(raw).strip().lower().replace(" ", "_")


def error_from_payload(payload: dict[str, Any], status: int) -> DeviceAuthError:
    """Map a device-flow error body onto the matching DeviceAuthError."""
    code = _error_code(payload)
    cls = _ERRORS_BY_CODE.get(code)
    if cls is not None:
        return cls(code, data={"status": status})
    description = payload.get("error_description") or code or f"HTTP {status}"
    err = UnknownDeviceAuthError(str(description), data={"status": status, "code": code})
    err.code = code or "unknown"
    return err


class DeviceCodeFlow:
    """Handles the OAuth Device Authorization Grant (RFC 8628) against Twitch.

    The flow is two steps: ``request_device_code`` obtains a user code to show,
    then ``poll_for_token`` waits until the user authorizes it. Polling is
    strictly sequential and never faster than the interval Twitch asked for.
    """

    def __init__(
        self,
        client_id: str,
        session: aiohttp.ClientSession,
        scopes: Iterable[str] = DEFAULT_SCOPES,
    ):
        """Initialize the device code flow handler.

        Args:
            client_id: Twitch application client ID.
            session: Shared aiohttp session used for both requests.
            scopes: OAuth scopes requested for the token.
        """
        self.client_id = client_id
        self.session = session
        self.scopes = tuple(scopes)
        self.device_code_url = DEVICE_CODE_URL
        self.token_url = TOKEN_URL

    async def request_device_code(self) -> DeviceCodeState:
        """Request a device code from Twitch.

        Returns:
            The device code state for this attempt.

        Raises:
            NetworkError: If the request cannot be completed.
            InvalidClient: If Twitch does not know the client ID.
            ProtocolError: For any other unexpected response.
        """
        data = {"client_id": self.client_id, "scopes": " ".join(self.scopes)}
        status, payload = await self._post_form(self.device_code_url, data)
        if status == 200:
            state = DeviceCodeState.from_response(payload)
            logging.info(
                f"🔑 Device code retrieved client_id={self.client_id} interval={state.interval}s"
            )
            return state
        err = error_from_payload(payload, status)
        if isinstance(err, InvalidClient):
            raise err
        logging.error(
            f"💥 Failed to obtain device code status={status} body={str(payload)}"
        )
        raise ProtocolError(
            f"Device code request failed with HTTP {status}",
            data={"status": status, "code": err.code},
        )

    async def poll_for_token(
        self,
        device_code: str,
        interval: int,
        on_status: StatusCallback | None = None,
        cancel_token: CancelToken | None = None,
        expires_at: datetime | None = None,
    ) -> str:
        """Poll Twitch until the user authorizes the device code.

        Waits ``interval`` seconds before every request and awaits each
        response before issuing the next one.

        Args:
            device_code: Device code from ``request_device_code``.
            interval: Initial polling interval in seconds.
            on_status: Optional callback receiving human-readable progress.
            cancel_token: Optional cancellation signal.
            expires_at: Optional absolute expiry of the device code.

        Returns:
            The OAuth access token.

        Raises:
            asyncio.CancelledError: If the attempt was cancelled.
            AccessDenied, ExpiredToken, InvalidClient, UnknownDeviceAuthError:
                Terminal authorization outcomes.
            NetworkError, ProtocolError: Transport or response failures.
        """
        data = {
            "client_id": self.client_id,
            "device_code": device_code,
            "grant_type": DEVICE_GRANT_TYPE,
        }
        current_interval = max(int(interval), 1)
        poll_count = 0
        started = datetime.now(UTC)

        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            if expires_at is not None and datetime.now(UTC) >= expires_at:
                raise ExpiredToken("Device code expired before authorization")

            await _wait_interval(current_interval, cancel_token)
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            poll_count += 1
            elapsed = (datetime.now(UTC) - started).total_seconds()
            status, payload = await self._post_form(self.token_url, data)
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            if status == 200:
                token = payload.get("access_token")
                if not isinstance(token, str) or not token:
                    raise ProtocolError("Token response missing access_token")
                logging.info(
                    f"✅ Authorized after {format_duration(elapsed)} (polls={poll_count}) client_id={self.client_id}"
                )
                return token

            err = error_from_payload(payload, status)
            if isinstance(err, AuthorizationPending):
                logging.debug(
                    f"⏳ Authorization pending elapsed={format_duration(elapsed)} polls={poll_count}"
                )
                self._report(on_status, WAITING_STATUS, cancel_token)
                continue
            if isinstance(err, SlowDown):
                current_interval += DEVICE_FLOW_SLOW_DOWN_INCREMENT
                logging.warning(
                    f"🐢 Twitch requested slower polling interval={current_interval}s polls={poll_count}"
                )
                self._report(
                    on_status,
                    f"Slowing down, polling every {current_interval}s",
                    cancel_token,
                )
                continue

            logging.warning(
                f"🚫 Device authorization ended code={err.code} polls={poll_count}"
            )
            raise err

    async def _post_form(
        self, url: str, data: dict[str, str]
    ) -> tuple[int, dict[str, Any]]:
        try:
            async with self.session.post(url, data=data) as response:
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise ProtocolError(
                        f"Non-JSON response from {url} (status={response.status})",
                        data={"status": response.status},
                    ) from e
                status = response.status
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            raise NetworkError(
                f"Device flow request failed: {type(e).__name__} {str(e)}",
                data={"url": url},
            ) from e
        if not isinstance(payload, dict):
            raise ProtocolError(
                f"Unexpected response body from {url}", data={"status": status}
            )
        return status, payload

    @staticmethod
    def _report(
        on_status: StatusCallback | None,
        message: str,
        cancel_token: CancelToken | None,
    ) -> None:
        if on_status is None:
            return
        if cancel_token is not None and cancel_token.cancelled:
            return
        on_status(message)
