"""Secret storage backed by the system keyring.

``SecretStore`` is the narrow key/value contract; ``KeyringSecretStore``
implements it with the ``keyring`` library and ``CredentialStore`` exposes
the named operations the rest of the application uses.
"""

from __future__ import annotations

import logging
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..auth_token.types import TwitchCredentials
from ..constants import KEYRING_SERVICE
from ..errors.internal import SecretStoreError

WEBSOCKET_TOKEN_ACCOUNT = "websocketAuthToken"
TWITCH_TOKEN_ACCOUNT = "twitchOAuthToken"
TWITCH_CHANNEL_ACCOUNT = "twitchChannelID"
TWITCH_USERNAME_ACCOUNT = "twitchBotUsername"
TWITCH_BOT_USER_ID_ACCOUNT = "twitchBotUserID"


class SecretStore(Protocol):
    """Key/value secret storage keyed by account name."""

    def get(self, account: str) -> str | None: ...

    def set(self, account: str, value: str) -> None: ...

    def delete(self, account: str) -> None: ...


class KeyringSecretStore:
    """SecretStore implementation using the platform keyring."""

    def __init__(self, service: str = KEYRING_SERVICE) -> None:
        self.service = service

    def get(self, account: str) -> str | None:
        try:
            return keyring.get_password(self.service, account)
        except KeyringError as e:
            logging.warning(f"⚠️ Keyring read failed account={account}: {str(e)}")
            return None

    def set(self, account: str, value: str) -> None:
        try:
            keyring.set_password(self.service, account, value)
        except KeyringError as e:
            raise SecretStoreError(
                f"Keyring write failed for {account}: {str(e)}",
                data={"account": account},
            ) from e

    def delete(self, account: str) -> None:
        try:
            keyring.delete_password(self.service, account)
        except PasswordDeleteError:
            # Nothing stored under this account
            return
        except KeyringError as e:
            logging.warning(f"⚠️ Keyring delete failed account={account}: {str(e)}")


class CredentialStore:
    """Named credential operations over a SecretStore.

    Save overwrites, delete is idempotent and load returns None when the
    value is missing or empty.
    """

    def __init__(self, store: SecretStore) -> None:
        self._store = store

    def _load(self, account: str) -> str | None:
        value = self._store.get(account)
        return value or None

    def _save(self, account: str, value: str) -> None:
        self._store.set(account, value)
        logging.debug(f"🔐 Saved secret account={account}")

    def _delete(self, account: str) -> None:
        self._store.delete(account)
        logging.debug(f"🗑️ Deleted secret account={account}")

    # WebSocket broadcaster auth token
    def save_token(self, token: str) -> None:
        self._save(WEBSOCKET_TOKEN_ACCOUNT, token)

    def load_token(self) -> str | None:
        return self._load(WEBSOCKET_TOKEN_ACCOUNT)

    def delete_token(self) -> None:
        self._delete(WEBSOCKET_TOKEN_ACCOUNT)

    # Twitch OAuth token
    def save_twitch_token(self, token: str) -> None:
        self._save(TWITCH_TOKEN_ACCOUNT, token)

    def load_twitch_token(self) -> str | None:
        return self._load(TWITCH_TOKEN_ACCOUNT)

    def delete_twitch_token(self) -> None:
        self._delete(TWITCH_TOKEN_ACCOUNT)

    # Channel to join
    def save_twitch_channel_id(self, channel: str) -> None:
        self._save(TWITCH_CHANNEL_ACCOUNT, channel)

    def load_twitch_channel_id(self) -> str | None:
        return self._load(TWITCH_CHANNEL_ACCOUNT)

    def delete_twitch_channel_id(self) -> None:
        self._delete(TWITCH_CHANNEL_ACCOUNT)

    # Bot identity
    def save_twitch_username(self, username: str) -> None:
        self._save(TWITCH_USERNAME_ACCOUNT, username)

    def load_twitch_username(self) -> str | None:
        return self._load(TWITCH_USERNAME_ACCOUNT)

    def delete_twitch_username(self) -> None:
        self._delete(TWITCH_USERNAME_ACCOUNT)

    def save_twitch_bot_user_id(self, user_id: str) -> None:
        self._save(TWITCH_BOT_USER_ID_ACCOUNT, user_id)

    def load_twitch_bot_user_id(self) -> str | None:
        return self._load(TWITCH_BOT_USER_ID_ACCOUNT)

    def delete_twitch_bot_user_id(self) -> None:
        self._delete(TWITCH_BOT_USER_ID_ACCOUNT)

    def load_credentials(self) -> TwitchCredentials:
        return TwitchCredentials(
            oauth_token=self.load_twitch_token(),
            bot_username=self.load_twitch_username(),
            bot_user_id=self.load_twitch_bot_user_id(),
            channel_id=self.load_twitch_channel_id(),
        )

    def clear_twitch_credentials(self) -> None:
        self.delete_twitch_username()
        self.delete_twitch_bot_user_id()
        self.delete_twitch_token()
        self.delete_twitch_channel_id()
        logging.info("🧹 Twitch credentials cleared")
