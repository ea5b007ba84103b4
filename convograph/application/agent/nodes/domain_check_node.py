"""
Domain guard node: asks the model whether the latest user message is about the
configured topic. Off-topic messages get a refusal and end the run; if the
check itself fails the message is let through.
"""

import logging
import re

from convograph.application.agent.nodes.base import LanguageModelNode
from convograph.application.agent.prompts import DOMAIN_CHECK_SYSTEM_PROMPT, OFF_DOMAIN_REPLY
from convograph.application.graph.node import StateUpdate
from convograph.domain.entities.conversation_state import ConversationState
from convograph.domain.entities.message import Message
from convograph.domain.ports.llm_port import ILanguageModel

logger = logging.getLogger(__name__)

_YES = re.compile(r"\byes\b", re.IGNORECASE)


class DomainCheckNode(LanguageModelNode):
    NAME = "domain_check"

    def __init__(self, llm: ILanguageModel, domain: str) -> None:
        super().__init__(llm)
        if not domain or not domain.strip():
            raise ValueError("domain must be a non-empty string")
        self._domain = domain.strip()

    async def run(self, state: ConversationState) -> StateUpdate:
        text = state.last_user_text()
        if text is None:
            return {"domain_allowed": True}
        try:
            verdict = await self._complete(
                DOMAIN_CHECK_SYSTEM_PROMPT.format(domain=self._domain), text
            )
        except Exception as exc:
            logger.warning("Domain check failed, letting the message through: %s", exc)
            return self.fallback(state, exc)

        logger.debug("Related to %s? %r", self._domain, verdict)
        if _YES.search(verdict):
            return {"domain_allowed": True}
        return {
            "domain_allowed": False,
            "messages": [Message.assistant(OFF_DOMAIN_REPLY.format(domain=self._domain))],
        }

    def fallback(self, state: ConversationState, error: BaseException) -> StateUpdate:
        return {"domain_allowed": True}
