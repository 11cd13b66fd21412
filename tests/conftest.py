import pytest

from wolfwave.config.repository import SettingsRepository
from wolfwave.constants import CLIENT_ID_ENV
from wolfwave.logging_config import error_aggregator
from wolfwave.storage.secret_store import CredentialStore


class MemorySecretStore:
    """In-memory SecretStore used instead of the system keyring."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def get(self, account: str) -> str | None:
        return self.values.get(account)

    def set(self, account: str, value: str) -> None:
        self.values[account] = value

    def delete(self, account: str) -> None:
        self.values.pop(account, None)


@pytest.fixture()
def secret_store() -> MemorySecretStore:
    return MemorySecretStore()


@pytest.fixture()
def credentials(secret_store: MemorySecretStore) -> CredentialStore:
    return CredentialStore(secret_store)


@pytest.fixture()
def settings_repo(tmp_path) -> SettingsRepository:
    return SettingsRepository(tmp_path / "settings.json")


@pytest.fixture()
def unwritable_settings_repo(tmp_path) -> SettingsRepository:
    """Settings whose parent "directory" is a plain file, so every write fails."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    return SettingsRepository(blocker / "settings.json")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from the developer's client ID and settings file."""
    monkeypatch.delenv(CLIENT_ID_ENV, raising=False)
    monkeypatch.setenv("WOLFWAVE_SETTINGS_FILE", str(tmp_path / "env-settings.json"))
    yield


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    error_aggregator.reset()
    yield
    error_aggregator.reset()
