"""
Summarize node: once the conversation grows past ``threshold`` messages, append
one summary of the last ``window`` messages (``0`` summarizes everything).
Below the threshold, or when the model call fails, the state is left as is.
"""

import logging

from convograph.application.agent.nodes.base import LanguageModelNode, format_transcript
from convograph.application.agent.prompts import SUMMARY_SYSTEM_PROMPT
from convograph.application.graph.node import StateUpdate
from convograph.domain.entities.conversation_state import ConversationState
from convograph.domain.ports.llm_port import ILanguageModel

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_THRESHOLD = 10
DEFAULT_SUMMARY_WINDOW = 8


class SummarizeNode(LanguageModelNode):
    NAME = "summarize"

    def __init__(
        self,
        llm: ILanguageModel,
        threshold: int = DEFAULT_SUMMARY_THRESHOLD,
        window: int = DEFAULT_SUMMARY_WINDOW,
    ) -> None:
        super().__init__(llm)
        if threshold < 0:
            raise ValueError("threshold must be >= 0")
        if window < 0:
            raise ValueError("window must be >= 0")
        self._threshold = threshold
        self._window = window

    def should_summarize(self, state: ConversationState) -> bool:
        return len(state.messages) > self._threshold

    async def run(self, state: ConversationState) -> StateUpdate:
        if not self.should_summarize(state):
            return {}
        messages = state.messages[-self._window:] if self._window else state.messages
        logger.info("Creating conversation summary from %d message(s)", len(messages))
        try:
            summary = await self._complete(SUMMARY_SYSTEM_PROMPT, format_transcript(messages))
        except Exception as exc:
            logger.warning("Summarization failed: %s", exc)
            return {}
        if not summary:
            return {}
        return {"summaries": [summary]}
