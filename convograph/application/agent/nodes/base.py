"""
Shared plumbing for nodes that call the language model.
"""

from typing import Iterable

from convograph.application.graph.node import Node
from convograph.domain.entities.message import Message
from convograph.domain.ports.llm_port import ILanguageModel


def format_transcript(messages: Iterable[Message]) -> str:
    """Render messages as ``role: text`` lines for prompts that take a transcript."""
    return "\n".join(f"{m.role.value}: {m.text}" for m in messages)


class LanguageModelNode(Node):
    NAME = ""

    def __init__(self, llm: ILanguageModel) -> None:
        self._llm = llm

    async def _complete(self, system_prompt: str, user_text: str) -> str:
        """One system instruction plus one user message, reply text stripped."""
        reply = await self._llm.invoke([Message.system(system_prompt), Message.user(user_text)])
        return reply.strip()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.NAME!r})"
