"""
Infrastructure adapter: Amazon Bedrock (ChatBedrock) -> ILanguageModel.
All ChatBedrock / langchain_aws details are confined here.
"""

import os
from typing import Any, Optional

from langchain_aws import ChatBedrock

from convograph.infrastructure.llm.langchain_adapter import LangChainChatAdapter


class BedrockChatAdapter(LangChainChatAdapter):
    """Wraps ChatBedrock and exposes the ILanguageModel interface."""

    MODEL_ID = "us.amazon.nova-pro-v1:0"

    def __init__(
        self,
        model_id: Optional[str] = None,
        region: Optional[str] = None,
        temperature: float = 0.0,
        callbacks: Optional[list] = None,
        _runnable: Any = None,
    ) -> None:
        """
        Args:
            model_id:    Bedrock model or inference-profile id.
            region:      AWS region; falls back to AWS_DEFAULT_REGION.
            temperature: Sampling temperature.
            callbacks:   LangChain callback handlers attached to every call.
            _runnable:   Optional pre-configured Runnable used instead of
                         constructing ChatBedrock (tests, custom clients).
        """
        if _runnable is None:
            _runnable = ChatBedrock(
                model=model_id or self.MODEL_ID,
                model_kwargs={"temperature": temperature},
                region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
            )
        super().__init__(_runnable, callbacks=callbacks)
