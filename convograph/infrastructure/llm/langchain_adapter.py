"""
Infrastructure adapter: any LangChain chat model -> ILanguageModel.

Message conversion and reply flattening live here so provider adapters only
construct their chat model. Observability callbacks ride along in the
per-call RunnableConfig.
"""

from typing import Any, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from convograph.domain.entities.message import Message, Role
from convograph.domain.ports.llm_port import ILanguageModel

_MESSAGE_TYPES = {
    Role.SYSTEM: SystemMessage,
    Role.USER: HumanMessage,
    Role.ASSISTANT: AIMessage,
}


def to_langchain_messages(messages: Sequence[Message]) -> list[BaseMessage]:
    return [_MESSAGE_TYPES[m.role](content=m.text) for m in messages]


def extract_text(response: Any) -> str:
    """Flatten a chat model reply to plain text.

    Providers return either a string or a list of content blocks
    (``{"type": "text", "text": ...}`` dicts or bare strings).
    """
    content = getattr(response, "content", response)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)
    return str(content)


class LangChainChatAdapter(ILanguageModel):
    """Wraps a LangChain chat model (or any Runnable taking a message list)."""

    def __init__(self, chat_model: Any, callbacks: Optional[list] = None) -> None:
        """
        Args:
            chat_model: Runnable exposing ``ainvoke(messages, config=...)``.
            callbacks:  LangChain callback handlers attached to every call.
        """
        self._llm = chat_model
        self._callbacks = list(callbacks or [])

    async def invoke(self, messages: Sequence[Message]) -> str:
        config = {"callbacks": self._callbacks} if self._callbacks else None
        response = await self._llm.ainvoke(to_langchain_messages(messages), config=config)
        return extract_text(response)
