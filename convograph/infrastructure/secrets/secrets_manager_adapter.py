"""
Infrastructure adapter: AWS Secrets Manager -> ISecretStore.

Entry points call load_into_env() once at startup, before Settings are read,
so a deployed process can receive its model credential (e.g. GEMINI_API_KEY)
and Langfuse keys from a single JSON secret.
"""

import json
import logging
import os
from typing import Any, MutableMapping, Optional

import boto3

from convograph.domain.ports.secret_store_port import ISecretStore

logger = logging.getLogger(__name__)


class SecretsManagerAdapter(ISecretStore):
    """Fetches and deserializes JSON secrets from AWS Secrets Manager."""

    def __init__(
        self,
        region: Optional[str] = None,
        client: Any = None,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> None:
        self._client = client or boto3.client(
            "secretsmanager",
            region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
        )
        self._environ = os.environ if environ is None else environ

    def get_secret(self, secret_id: str) -> dict[str, str]:
        """Fetch a JSON secret by ARN or name.

        Raises:
            ValueError: if the secret is not a JSON object.
        """
        response = self._client.get_secret_value(SecretId=secret_id)
        payload = json.loads(response["SecretString"])
        if not isinstance(payload, dict):
            raise ValueError(f"Secret {secret_id!r} must hold a JSON object")
        return {str(key): str(value) for key, value in payload.items()}

    def load_into_env(self, secret_id: str) -> list[str]:
        """Copy the secret's pairs into the environment.

        Variables that are already set win over the secret, so a local
        override is never clobbered. Returns the names that were set.
        """
        loaded = []
        for key, value in self.get_secret(secret_id).items():
            if key in self._environ:
                continue
            self._environ[key] = value
            loaded.append(key)
        logger.info("Loaded %d variable(s) from secret %s", len(loaded), secret_id)
        return loaded
