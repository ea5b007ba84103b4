"""
Port (interface) for tracing model calls.
LangfuseObservabilityHandler implements it; the LLM factory attaches its
callback to every provider adapter it builds.
"""

from abc import ABC, abstractmethod
from typing import Any


class IObservabilityHandler(ABC):
    @abstractmethod
    def as_callback(self) -> Any:
        """Callback object handed to the chat model on each invoke."""
        ...

    @abstractmethod
    def flush(self) -> None:
        """Send buffered traces; entry points call this once on shutdown."""
        ...
