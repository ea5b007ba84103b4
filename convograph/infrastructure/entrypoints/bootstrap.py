"""
Composition Root helpers shared by the CLI and the HTTP entry points.

Order matters: .env first, then the optional Secrets Manager secret, then
Settings, so every source of configuration is visible to Settings.from_env().
"""

import os
from typing import Optional

from dotenv import load_dotenv

from convograph.application.agent.graph import build_conversation_graph
from convograph.application.graph.executor import CompiledGraph
from convograph.domain.ports.observability_port import IObservabilityHandler
from convograph.infrastructure.config.settings import Settings
from convograph.infrastructure.llm.factory import create_language_model


def load_settings() -> Settings:
    load_dotenv()
    secret_arn = os.environ.get("CONVOGRAPH_SECRET_ARN")
    if secret_arn:
        from convograph.infrastructure.secrets.secrets_manager_adapter import (
            SecretsManagerAdapter,
        )

        SecretsManagerAdapter().load_into_env(secret_arn)
    return Settings.from_env()


def build_graph(
    settings: Settings,
    observability: Optional[IObservabilityHandler] = None,
) -> CompiledGraph:
    llm = create_language_model(settings, observability)
    return build_conversation_graph(
        llm,
        summary_threshold=settings.summary_threshold,
        summary_window=settings.summary_window,
        allowed_domain=settings.allowed_domain,
        max_steps=settings.max_steps,
        node_timeout=settings.node_timeout,
    )
