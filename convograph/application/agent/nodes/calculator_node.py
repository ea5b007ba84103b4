"""
Calculator node: evaluates the latest user message as an arithmetic expression.

The message is checked against the arithmetic alphabet before it reaches the
evaluator. Anything that is not arithmetic leaves the state untouched; invalid
expressions and non-finite results become an ordinary assistant reply.
"""

import logging

from convograph.application.agent.prompts import (
    CALCULATION_ERROR_REPLY,
    CALCULATION_RESULT_TEMPLATE,
)
from convograph.application.graph.node import Node, StateUpdate
from convograph.domain.entities.conversation_state import ConversationState
from convograph.domain.entities.message import Message
from convograph.domain.services.arithmetic import (
    ExpressionError,
    evaluate,
    format_number,
    is_arithmetic,
)

logger = logging.getLogger(__name__)


class CalculatorNode(Node):
    NAME = "calculator"

    async def run(self, state: ConversationState) -> StateUpdate:
        text = state.last_user_text()
        if not is_arithmetic(text):
            return {}

        expression = text.strip()
        try:
            result = evaluate(expression)
        except ExpressionError as exc:
            logger.info("Could not calculate %r: %s", expression, exc)
            return {"messages": [Message.assistant(CALCULATION_ERROR_REPLY)]}

        logger.info("Calculator activated: %s = %s", expression, format_number(result))
        reply = CALCULATION_RESULT_TEMPLATE.format(
            expression=expression, result=format_number(result)
        )
        return {"messages": [Message.assistant(reply)]}
