"""
Sentiment node: classifies the latest user message as positive, neutral or
negative. Unexpected classifier output and failed calls both resolve to neutral.
"""

import logging

from convograph.application.agent.nodes.base import LanguageModelNode
from convograph.application.agent.prompts import SENTIMENT_SYSTEM_PROMPT
from convograph.application.graph.node import StateUpdate
from convograph.domain.entities.conversation_state import ConversationState, Sentiment

logger = logging.getLogger(__name__)


class SentimentNode(LanguageModelNode):
    NAME = "sentiment"

    async def run(self, state: ConversationState) -> StateUpdate:
        text = state.last_user_text()
        if text is None:
            return {}
        try:
            raw = await self._complete(SENTIMENT_SYSTEM_PROMPT, text)
        except Exception as exc:
            logger.warning("Sentiment classification failed: %s", exc)
            return self.fallback(state, exc)

        sentiment = Sentiment.coerce(raw)
        if sentiment.value != raw.lower():
            logger.debug("Classifier answered %r, using %s", raw, sentiment.value)
        return {"sentiment": sentiment}

    def fallback(self, state: ConversationState, error: BaseException) -> StateUpdate:
        return {"sentiment": Sentiment.NEUTRAL}
