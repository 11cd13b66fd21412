"""Secret storage."""

from .secret_store import CredentialStore, KeyringSecretStore, SecretStore

__all__ = ["SecretStore", "KeyringSecretStore", "CredentialStore"]
