"""
Router node: decides whether the latest user message is plain arithmetic.
No model call; the decision is a character-class check on the trimmed text.
"""

import logging

from convograph.application.graph.node import Node, StateUpdate
from convograph.domain.entities.conversation_state import ConversationState, Route
from convograph.domain.services.arithmetic import is_arithmetic

logger = logging.getLogger(__name__)


class RouterNode(Node):
    NAME = "router"

    async def run(self, state: ConversationState) -> StateUpdate:
        route = Route.CALCULATOR if is_arithmetic(state.last_user_text()) else Route.CHAT
        logger.debug("Routing to %s", route.value)
        return {"route": route}
