"""
Infrastructure adapter: Langfuse -> IObservabilityHandler.

Langfuse is imported lazily so the module loads even when the package is not
configured. The handler is attached to every model call made through the
LangChain adapters; graph steps themselves are logged, not traced.
"""

import logging
from typing import Any, Optional

from convograph.domain.ports.observability_port import IObservabilityHandler
from convograph.infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)


class LangfuseObservabilityHandler(IObservabilityHandler):
    """Wraps the Langfuse LangChain CallbackHandler."""

    def __init__(self) -> None:
        from langfuse.langchain import CallbackHandler

        self._handler = CallbackHandler()

    def as_callback(self) -> Any:
        return self._handler

    def flush(self) -> None:
        """Flush pending traces to the Langfuse backend before the process exits."""
        from langfuse import get_client

        get_client().flush()


def create_observability_handler(settings: Settings) -> Optional[IObservabilityHandler]:
    """Return a Langfuse handler when its keys are configured, else None."""
    if not settings.langfuse_enabled:
        return None
    logger.info("Langfuse tracing enabled for model calls")
    return LangfuseObservabilityHandler()
