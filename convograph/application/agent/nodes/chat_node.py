"""
General chat node: sends the conversation to the language model and appends
its reply. A failed or empty model call appends an apology instead.
"""

import logging
from typing import Optional

from convograph.application.agent.nodes.base import LanguageModelNode
from convograph.application.agent.prompts import (
    CHAT_ERROR_REPLY,
    CHAT_SYSTEM_PROMPT,
    DOMAIN_CHAT_SYSTEM_PROMPT,
)
from convograph.application.graph.node import StateUpdate
from convograph.domain.entities.conversation_state import ConversationState
from convograph.domain.entities.message import Message
from convograph.domain.ports.llm_port import ILanguageModel

logger = logging.getLogger(__name__)


class ChatNode(LanguageModelNode):
    NAME = "chatbot"

    def __init__(self, llm: ILanguageModel, domain: Optional[str] = None) -> None:
        super().__init__(llm)
        if domain:
            self._system_prompt = DOMAIN_CHAT_SYSTEM_PROMPT.format(domain=domain)
        else:
            self._system_prompt = CHAT_SYSTEM_PROMPT

    async def run(self, state: ConversationState) -> StateUpdate:
        prompt = [Message.system(self._system_prompt), *state.messages]
        try:
            reply = await self._llm.invoke(prompt)
        except Exception as exc:
            logger.warning("Chat model call failed: %s", exc)
            return self.fallback(state, exc)
        if not reply.strip():
            logger.warning("Chat model returned an empty reply")
            return self.fallback(state, ValueError("empty reply"))
        return {"messages": [Message.assistant(reply)]}

    def fallback(self, state: ConversationState, error: BaseException) -> StateUpdate:
        return {"messages": [Message.assistant(CHAT_ERROR_REPLY)]}
