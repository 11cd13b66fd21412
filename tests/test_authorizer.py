from __future__ import annotations

import asyncio
from typing import Any

import pytest

from wolfwave.auth_token import device_flow
from wolfwave.auth_token.authorizer import DeviceAuthorizer, describe_failure
from wolfwave.auth_token.types import DeviceCodeState
from wolfwave.config.repository import SettingsRepository
from wolfwave.errors import AccessDenied, ConfigurationError, ExpiredToken, NetworkError
from wolfwave.storage.secret_store import CredentialStore


class _Resp:
    def __init__(self, status: int, payload: dict[str, Any]):
        self.status = status
        self._payload = payload

    async def json(self, content_type: str | None = None) -> Any:  # noqa: ARG002
        await asyncio.sleep(0)
        return self._payload


class _CM:
    def __init__(self, resp: _Resp):
        self._resp = resp

    async def __aenter__(self) -> _Resp:
        return self._resp

    async def __aexit__(self, _exc_type, _exc, _tb) -> bool:  # noqa: ANN001
        return False


class _TwitchSession:
    """Scripted Twitch: each device code gets its own token outcome."""

    def __init__(self, outcomes: list[dict[str, Any]], user: dict[str, Any] | None = None):
        self._outcomes = outcomes
        self._issued = 0
        self.user = user
        self.token_polls: dict[str, int] = {}

    def post(self, url: str, data: dict[str, Any]) -> _CM:
        if url.endswith("/device"):
            self._issued += 1
            return _CM(
                _Resp(
                    200,
                    {
                        "device_code": f"dev{self._issued}",
                        "user_code": f"CODE{self._issued}",
                        "verification_uri": "https://www.twitch.tv/activate",
                        "expires_in": 1800,
                        "interval": 5,
                    },
                )
            )
        code = data["device_code"]
        self.token_polls[code] = self.token_polls.get(code, 0) + 1
        outcome = self._outcomes[int(code.removeprefix("dev")) - 1]
        status = 200 if "access_token" in outcome else 400
        return _CM(_Resp(status, outcome))

    def request(self, method: str, url: str, headers=None, params=None, json=None) -> _CM:  # noqa: A002, ARG002
        if self.user is None:
            return _CM(_Resp(500, {"message": "unavailable"}))
        return _CM(_Resp(200, {"data": [self.user]}))


@pytest.fixture(autouse=True)
def fast_polling(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_wait(seconds: float, cancel_token) -> None:  # noqa: ANN001, ARG001
        await asyncio.sleep(0)

    monkeypatch.setattr(device_flow, "_wait_interval", fake_wait)


def _authorizer(
    session: _TwitchSession,
    credentials: CredentialStore,
    settings_repo: SettingsRepository,
    client_id: str | None = "cid",
) -> DeviceAuthorizer:
    return DeviceAuthorizer(
        session=session,  # type: ignore[arg-type]
        credentials=credentials,
        settings=settings_repo,
        client_id_provider=lambda: client_id,
    )


async def test_successful_attempt_stores_token_and_identity(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    settings_repo.update(reauth_needed=True)
    session = _TwitchSession(
        [{"access_token": "fresh"}], user={"id": "42", "login": "wolfbot"}
    )
    authorizer = _authorizer(session, credentials, settings_repo)
    codes: list[DeviceCodeState] = []
    statuses: list[str] = []

    task = await authorizer.start(codes.append, statuses.append)
    token = await task

    assert token == "fresh"
    assert [c.user_code for c in codes] == ["CODE1"]
    assert credentials.load_twitch_token() == "fresh"
    assert credentials.load_twitch_username() == "wolfbot"
    assert credentials.load_twitch_bot_user_id() == "42"
    assert settings_repo.load().reauth_needed is False
    assert statuses[-1] == "Authorized"
    assert not authorizer.active


async def test_identity_failure_keeps_token(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    session = _TwitchSession([{"access_token": "fresh"}], user=None)
    authorizer = _authorizer(session, credentials, settings_repo)
    statuses: list[str] = []
    task = await authorizer.start(lambda _state: None, statuses.append)
    assert await task == "fresh"
    assert credentials.load_twitch_token() == "fresh"
    assert credentials.load_twitch_username() is None
    assert any("could not be identified" in s for s in statuses)


async def test_denied_attempt_reports_and_raises(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    session = _TwitchSession([{"message": "access_denied"}])
    authorizer = _authorizer(session, credentials, settings_repo)
    statuses: list[str] = []
    task = await authorizer.start(lambda _state: None, statuses.append)
    with pytest.raises(AccessDenied):
        await task
    assert statuses == [describe_failure(AccessDenied("x"))]
    assert credentials.load_twitch_token() is None


async def test_missing_client_id_fails_without_network(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    session = _TwitchSession([])
    authorizer = _authorizer(session, credentials, settings_repo, client_id=None)
    codes: list[DeviceCodeState] = []
    statuses: list[str] = []
    task = await authorizer.start(codes.append, statuses.append)
    with pytest.raises(ConfigurationError):
        await task
    assert codes == []
    assert len(statuses) == 1 and "Client ID" in statuses[0]


async def test_new_attempt_cancels_previous(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    session = _TwitchSession(
        [{"message": "authorization_pending"}, {"access_token": "second"}],
        user={"id": "1", "login": "bot"},
    )
    authorizer = _authorizer(session, credentials, settings_repo)
    first_statuses: list[str] = []
    first = await authorizer.start(lambda _state: None, first_statuses.append)
    for _ in range(10):
        await asyncio.sleep(0)
    assert authorizer.active

    second = await authorizer.start(lambda _state: None)
    assert first.cancelled()
    polls_after_cancel = session.token_polls.get("dev1", 0)
    statuses_after_cancel = len(first_statuses)

    assert await second == "second"
    assert session.token_polls.get("dev1", 0) == polls_after_cancel
    assert len(first_statuses) == statuses_after_cancel
    assert credentials.load_twitch_token() == "second"


async def test_concurrent_starts_leave_a_single_attempt(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    pending = {"message": "authorization_pending"}
    session = _TwitchSession([pending, pending, pending])
    authorizer = _authorizer(session, credentials, settings_repo)
    first = await authorizer.start(lambda _state: None)
    for _ in range(10):
        await asyncio.sleep(0)
    assert authorizer.active

    second, third = await asyncio.gather(
        authorizer.start(lambda _state: None),
        authorizer.start(lambda _state: None),
    )
    for _ in range(20):
        await asyncio.sleep(0)

    assert first.cancelled()
    assert second.cancelled()
    assert not third.done()
    assert authorizer.active

    await authorizer.cancel()
    assert third.cancelled()
    assert credentials.load_twitch_token() is None


async def test_cancel_stops_active_attempt(
    credentials: CredentialStore, settings_repo: SettingsRepository
) -> None:
    session = _TwitchSession([{"message": "authorization_pending"}])
    authorizer = _authorizer(session, credentials, settings_repo)
    task = await authorizer.start(lambda _state: None)
    await asyncio.sleep(0)
    await authorizer.cancel()
    assert task.cancelled()
    assert not authorizer.active
    await authorizer.cancel()  # idempotent


def test_describe_failure_messages() -> None:
    assert "expired" in describe_failure(ExpiredToken("x"))
    assert "network" in describe_failure(NetworkError("x"))
    assert describe_failure(ConfigurationError("set it")) == "set it"
