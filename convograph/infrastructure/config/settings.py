"""
Runtime settings read from environment variables.

Entry points call python-dotenv's load_dotenv() first, so a local ``.env``
file works the same as exported variables. Only entry points build Settings;
the application layer receives plain values.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

PROVIDER_GEMINI = "gemini"
PROVIDER_BEDROCK = "bedrock"
PROVIDERS = (PROVIDER_GEMINI, PROVIDER_BEDROCK)


class ConfigurationError(ValueError):
    """An environment variable holds a value that cannot be used."""


class MissingCredentialError(ConfigurationError):
    """The selected model provider has no credential available."""


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} must be >= 0, got {value}")
    return value


def _get_str(env: Mapping[str, str], name: str) -> Optional[str]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    llm_provider: str = PROVIDER_GEMINI
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    bedrock_model_id: str = "us.amazon.nova-pro-v1:0"
    aws_region: str = "us-east-1"
    temperature: float = 0.7
    summary_threshold: int = 10
    summary_window: int = 8
    allowed_domain: Optional[str] = None
    max_steps: int = 25
    node_timeout: Optional[float] = 30.0
    log_level: str = "INFO"
    secret_arn: Optional[str] = None
    langfuse_enabled: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build Settings from *env* (defaults to ``os.environ``).

        Raises:
            ConfigurationError: on an unknown provider or a malformed number.
        """
        env = os.environ if env is None else env

        provider = (_get_str(env, "LLM_PROVIDER") or PROVIDER_GEMINI).lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"LLM_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider!r}"
            )

        node_timeout = _get_float(env, "NODE_TIMEOUT_SECONDS", 30.0)
        return cls(
            llm_provider=provider,
            gemini_api_key=_get_str(env, "GEMINI_API_KEY"),
            gemini_model=_get_str(env, "GEMINI_MODEL") or cls.gemini_model,
            bedrock_model_id=_get_str(env, "BEDROCK_MODEL_ID") or cls.bedrock_model_id,
            aws_region=_get_str(env, "AWS_DEFAULT_REGION") or cls.aws_region,
            temperature=_get_float(env, "LLM_TEMPERATURE", cls.temperature),
            summary_threshold=_get_int(env, "SUMMARY_THRESHOLD", cls.summary_threshold),
            summary_window=_get_int(env, "SUMMARY_WINDOW", cls.summary_window),
            allowed_domain=_get_str(env, "ALLOWED_DOMAIN"),
            max_steps=_get_int(env, "GRAPH_MAX_STEPS", cls.max_steps, minimum=1),
            node_timeout=node_timeout or None,
            log_level=(_get_str(env, "LOG_LEVEL") or cls.log_level).upper(),
            secret_arn=_get_str(env, "CONVOGRAPH_SECRET_ARN"),
            langfuse_enabled=bool(
                _get_str(env, "LANGFUSE_PUBLIC_KEY") and _get_str(env, "LANGFUSE_SECRET_KEY")
            ),
        )

    def require_credentials(self) -> None:
        """Fail fast when the selected provider cannot authenticate.

        Raises:
            MissingCredentialError: no Gemini key, or no AWS credentials for Bedrock.
        """
        if self.llm_provider == PROVIDER_GEMINI:
            if not self.gemini_api_key:
                raise MissingCredentialError("GEMINI_API_KEY missing in environment or .env file")
            return

        import boto3

        if boto3.session.Session(region_name=self.aws_region).get_credentials() is None:
            raise MissingCredentialError(
                "No AWS credentials found for Bedrock (set AWS_PROFILE or AWS_ACCESS_KEY_ID)"
            )
