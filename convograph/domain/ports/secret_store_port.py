"""
Port (interface) for secret stores.
Infrastructure adapters (e.g. SecretsManagerAdapter) must implement this interface.
"""

from abc import ABC, abstractmethod


class ISecretStore(ABC):
    @abstractmethod
    def get_secret(self, secret_id: str) -> dict[str, str]:
        """Fetch a secret and return its key-value pairs."""
        ...

    @abstractmethod
    def load_into_env(self, secret_id: str) -> list[str]:
        """Export the secret's pairs as environment variables; return the names set."""
        ...
