"""
Use-case: run one user turn through the compiled conversation graph.
Depends only on the graph engine and domain entities.
"""

import asyncio
from typing import AsyncGenerator, Optional

from convograph.application.graph.executor import CompiledGraph
from convograph.domain.entities.conversation_state import ConversationState
from convograph.domain.entities.message import Role


class RunConversationTurnUseCase:
    def __init__(self, graph: CompiledGraph) -> None:
        """
        Args:
            graph: CompiledGraph returned by build_conversation_graph().
        """
        self._graph = graph

    async def execute(
        self,
        state: ConversationState,
        user_text: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ConversationState:
        """Append *user_text* to *state* and run the graph to its end.

        Raises:
            ValueError: if *user_text* is blank.
            GraphError subclasses for runaway, cancelled or broken runs; the
            error's ``state`` attribute holds the state reached so far.
        """
        return await self._graph.ainvoke(
            self._start(state, user_text), cancel_event=cancel_event
        )

    async def stream(
        self,
        state: ConversationState,
        user_text: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncGenerator[dict, None]:
        """Run a turn and yield one event per executed node.

        Yields dicts of shape:
            {"node": str, "step": int, "fields": list[str], "state": ConversationState}
        """
        async for event in self._graph.astream(
            self._start(state, user_text), cancel_event=cancel_event
        ):
            yield {
                "node": event.node,
                "step": event.step,
                "fields": sorted(event.update),
                "state": event.state,
            }

    @staticmethod
    def _start(state: ConversationState, user_text: str) -> ConversationState:
        if not user_text or not user_text.strip():
            raise ValueError("user_text must be a non-empty string")
        return state.begin_turn(user_text.strip())

    @staticmethod
    def last_reply(state: ConversationState) -> Optional[str]:
        """Text of the newest assistant message, if the turn produced one."""
        last = state.last_message()
        if last is None or last.role is not Role.ASSISTANT:
            return None
        return last.text
