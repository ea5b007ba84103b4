"""
Calming node: when the latest message was classified negative, produce a short
empathetic reply in ``calming_response``. A fixed reply stands in when the
model call fails, so the field is set exactly when the sentiment was negative.
"""

import logging

from convograph.application.agent.nodes.base import LanguageModelNode
from convograph.application.agent.prompts import CALMING_FALLBACK_REPLY, CALMING_SYSTEM_PROMPT
from convograph.application.graph.node import StateUpdate
from convograph.domain.entities.conversation_state import ConversationState, Sentiment

logger = logging.getLogger(__name__)


class CalmingNode(LanguageModelNode):
    NAME = "calming"

    async def run(self, state: ConversationState) -> StateUpdate:
        if state.sentiment is not Sentiment.NEGATIVE:
            return {}
        text = state.last_user_text()
        if text is None:
            return self.fallback(state, ValueError("no user message"))
        try:
            reply = await self._complete(CALMING_SYSTEM_PROMPT, text)
        except Exception as exc:
            logger.warning("Calming response failed: %s", exc)
            return self.fallback(state, exc)
        return {"calming_response": reply or CALMING_FALLBACK_REPLY}

    def fallback(self, state: ConversationState, error: BaseException) -> StateUpdate:
        if state.sentiment is not Sentiment.NEGATIVE:
            return {}
        return {"calming_response": CALMING_FALLBACK_REPLY}
