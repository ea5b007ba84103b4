"""
Use-case: a long-lived chat session for an interactive surface.

The session owns the carried-over ConversationState and answers the control
commands (exit, reset, help, stats) itself; everything else is a user turn run
through the graph. It renders nothing: callers decide how replies look.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from convograph.application.graph.errors import GraphError
from convograph.application.use_cases.run_conversation_turn import RunConversationTurnUseCase
from convograph.domain.entities.conversation_state import ConversationState, ConversationStats

logger = logging.getLogger(__name__)


class Command(str, Enum):
    EXIT = "exit"
    RESET = "reset"
    HELP = "help"
    STATS = "stats"


COMMAND_ALIASES = {
    "exit": Command.EXIT,
    "quit": Command.EXIT,
    "clear": Command.RESET,
    "reset": Command.RESET,
    "help": Command.HELP,
    "stats": Command.STATS,
}

HELP_ENTRIES = (
    ("exit/quit", "Exit the chatbot"),
    ("clear/reset", "Clear conversation history"),
    ("help", "Show this help message"),
    ("stats", "Show conversation statistics"),
    ("math expression", "Use calculator (e.g., 2+2*3)"),
)


class ReplyKind(str, Enum):
    TURN = "turn"
    FAILED = "failed"
    IGNORED = "ignored"
    EXIT = "exit"
    RESET = "reset"
    HELP = "help"
    STATS = "stats"


@dataclass(frozen=True)
class SessionReply:
    kind: ReplyKind
    state: ConversationState
    text: Optional[str] = None
    stats: Optional[ConversationStats] = None
    error: Optional[GraphError] = None


def parse_command(line: str) -> Optional[Command]:
    return COMMAND_ALIASES.get(line.strip().lower())


class ChatSession:
    def __init__(
        self,
        use_case: RunConversationTurnUseCase,
        state: Optional[ConversationState] = None,
    ) -> None:
        self._use_case = use_case
        self._state = state or ConversationState.empty()

    @property
    def state(self) -> ConversationState:
        return self._state

    def reset(self) -> ConversationState:
        self._state = ConversationState.empty()
        return self._state

    async def handle(self, line: str) -> SessionReply:
        """Answer one line of user input.

        A graph failure aborts only this turn: the session keeps the state it
        had before the turn and reports the error in the reply.
        """
        text = line.strip()
        if not text:
            return SessionReply(ReplyKind.IGNORED, self._state)

        command = parse_command(text)
        if command is Command.EXIT:
            return SessionReply(ReplyKind.EXIT, self._state)
        if command is Command.RESET:
            return SessionReply(ReplyKind.RESET, self.reset())
        if command is Command.HELP:
            return SessionReply(ReplyKind.HELP, self._state)
        if command is Command.STATS:
            return SessionReply(ReplyKind.STATS, self._state, stats=self._state.stats())

        try:
            new_state = await self._use_case.execute(self._state, text)
        except GraphError as exc:
            logger.error("Turn aborted: %s", exc)
            return SessionReply(ReplyKind.FAILED, self._state, error=exc)

        self._state = new_state
        return SessionReply(
            ReplyKind.TURN,
            new_state,
            text=RunConversationTurnUseCase.last_reply(new_state),
        )
