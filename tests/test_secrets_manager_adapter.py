import json

import pytest

from convograph.infrastructure.secrets.secrets_manager_adapter import SecretsManagerAdapter


class FakeSecretsClient:
    def __init__(self, secrets):
        self.secrets = secrets
        self.requested = []

    def get_secret_value(self, SecretId):
        self.requested.append(SecretId)
        return {"SecretString": self.secrets[SecretId]}


def test_get_secret_parses_json_object():
    client = FakeSecretsClient({"app": json.dumps({"GEMINI_API_KEY": "abc", "PORT": 8000})})
    adapter = SecretsManagerAdapter(client=client, environ={})
    assert adapter.get_secret("app") == {"GEMINI_API_KEY": "abc", "PORT": "8000"}
    assert client.requested == ["app"]


def test_get_secret_rejects_non_objects():
    client = FakeSecretsClient({"app": json.dumps(["not", "a", "dict"])})
    with pytest.raises(ValueError):
        SecretsManagerAdapter(client=client, environ={}).get_secret("app")


def test_load_into_env_never_overrides_existing_variables():
    client = FakeSecretsClient(
        {"app": json.dumps({"GEMINI_API_KEY": "from-secret", "LANGFUSE_PUBLIC_KEY": "pk"})}
    )
    environ = {"GEMINI_API_KEY": "local"}
    loaded = SecretsManagerAdapter(client=client, environ=environ).load_into_env("app")

    assert loaded == ["LANGFUSE_PUBLIC_KEY"]
    assert environ == {"GEMINI_API_KEY": "local", "LANGFUSE_PUBLIC_KEY": "pk"}
