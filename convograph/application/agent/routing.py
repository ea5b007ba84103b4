"""
Edge predicates for the conversation graph.
Each is a pure function of the post-merge state.
"""

from convograph.domain.entities.conversation_state import ConversationState, Route, Sentiment


def routes_to_calculator(state: ConversationState) -> bool:
    return state.route is Route.CALCULATOR


def is_negative(state: ConversationState) -> bool:
    return state.sentiment is Sentiment.NEGATIVE


def is_domain_allowed(state: ConversationState) -> bool:
    return state.domain_allowed is True
