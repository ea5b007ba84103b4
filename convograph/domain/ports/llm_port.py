"""
Port (interface) for language model providers.
Infrastructure adapters (e.g. GeminiChatAdapter, BedrockChatAdapter) must
implement this interface. Graph nodes depend on nothing else.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from convograph.domain.entities.message import Message


class ILanguageModel(ABC):
    @abstractmethod
    async def invoke(self, messages: Sequence[Message]) -> str:
        """Send an ordered list of role-tagged messages and return the reply text.

        Retries, authentication and rate limiting belong to the implementation.
        Any failure is raised to the caller; nodes decide how to degrade.
        """
        ...
