"""
Composition helper: pick the ILanguageModel adapter named by the settings.
"""

from typing import Optional

from convograph.domain.ports.llm_port import ILanguageModel
from convograph.domain.ports.observability_port import IObservabilityHandler
from convograph.infrastructure.config.settings import PROVIDER_BEDROCK, Settings


def create_language_model(
    settings: Settings,
    observability: Optional[IObservabilityHandler] = None,
) -> ILanguageModel:
    callbacks = [observability.as_callback()] if observability is not None else None

    if settings.llm_provider == PROVIDER_BEDROCK:
        from convograph.infrastructure.llm.bedrock_adapter import BedrockChatAdapter

        return BedrockChatAdapter(
            model_id=settings.bedrock_model_id,
            region=settings.aws_region,
            temperature=settings.temperature,
            callbacks=callbacks,
        )

    from convograph.infrastructure.llm.gemini_adapter import GeminiChatAdapter

    return GeminiChatAdapter(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        temperature=settings.temperature,
        callbacks=callbacks,
    )
