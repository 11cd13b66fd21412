from __future__ import annotations

from unittest.mock import patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from wolfwave.errors import SecretStoreError
from wolfwave.storage.secret_store import (
    TWITCH_TOKEN_ACCOUNT,
    WEBSOCKET_TOKEN_ACCOUNT,
    CredentialStore,
    KeyringSecretStore,
)


def test_named_operations_round_trip(credentials: CredentialStore) -> None:
    credentials.save_token("ws-secret")
    credentials.save_twitch_token("oauth")
    credentials.save_twitch_channel_id("streamer")
    credentials.save_twitch_username("wolfbot")
    credentials.save_twitch_bot_user_id("42")

    assert credentials.load_token() == "ws-secret"
    creds = credentials.load_credentials()
    assert creds.oauth_token == "oauth"
    assert creds.channel_id == "streamer"
    assert creds.bot_username == "wolfbot"
    assert creds.bot_user_id == "42"
    assert creds.can_connect("cid") is True
    assert creds.can_connect(None) is False


def test_save_overwrites_and_delete_is_idempotent(secret_store, credentials: CredentialStore) -> None:
    credentials.save_twitch_token("one")
    credentials.save_twitch_token("two")
    assert secret_store.values[TWITCH_TOKEN_ACCOUNT] == "two"

    credentials.delete_twitch_token()
    credentials.delete_twitch_token()
    assert credentials.load_twitch_token() is None


def test_empty_values_load_as_missing(secret_store, credentials: CredentialStore) -> None:
    secret_store.values[WEBSOCKET_TOKEN_ACCOUNT] = ""
    assert credentials.load_token() is None


def test_clear_twitch_credentials_keeps_websocket_token(credentials: CredentialStore) -> None:
    credentials.save_token("ws")
    credentials.save_twitch_token("oauth")
    credentials.save_twitch_channel_id("streamer")
    credentials.save_twitch_username("bot")
    credentials.save_twitch_bot_user_id("1")

    credentials.clear_twitch_credentials()

    creds = credentials.load_credentials()
    assert creds.oauth_token is None
    assert creds.channel_id is None
    assert creds.bot_username is None
    assert creds.bot_user_id is None
    assert credentials.load_token() == "ws"


def test_keyring_store_uses_service_name() -> None:
    store = KeyringSecretStore("com.example.test")
    with patch("wolfwave.storage.secret_store.keyring") as kr:
        kr.get_password.return_value = "value"
        assert store.get("acct") == "value"
        store.set("acct", "new")
        store.delete("acct")
    kr.get_password.assert_called_once_with("com.example.test", "acct")
    kr.set_password.assert_called_once_with("com.example.test", "acct", "new")
    kr.delete_password.assert_called_once_with("com.example.test", "acct")


def test_keyring_read_failure_is_missing() -> None:
    store = KeyringSecretStore()
    with patch("wolfwave.storage.secret_store.keyring") as kr:
        kr.get_password.side_effect = KeyringError("locked")
        assert store.get("acct") is None


def test_keyring_write_failure_raises() -> None:
    store = KeyringSecretStore()
    with patch("wolfwave.storage.secret_store.keyring") as kr:
        kr.set_password.side_effect = KeyringError("read-only")
        with pytest.raises(SecretStoreError):
            store.set("acct", "value")


def test_keyring_delete_of_missing_entry_is_silent() -> None:
    store = KeyringSecretStore()
    with patch("wolfwave.storage.secret_store.keyring") as kr:
        kr.delete_password.side_effect = PasswordDeleteError("not found")
        store.delete("acct")
        kr.delete_password.side_effect = KeyringError("backend down")
        store.delete("acct")
