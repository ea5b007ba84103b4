"""
Domain entity for the state threaded through the conversation graph.
Zero external dependencies: pure Python dataclasses only.

ConversationState is frozen. Nodes never touch it directly; they return partial
updates which the graph executor merges into a new instance.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from convograph.domain.entities.message import Message, Role


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"

    @classmethod
    def coerce(cls, value: object) -> "Sentiment":
        """Map any raw classifier output onto one of the three sentiments.

        Case, surrounding whitespace and trailing punctuation are ignored.
        Anything else collapses to NEUTRAL.
        """
        if isinstance(value, Sentiment):
            return value
        if not isinstance(value, str):
            return cls.NEUTRAL
        cleaned = value.strip().lower().strip(".!?\"'` ")
        try:
            return cls(cleaned)
        except ValueError:
            return cls.NEUTRAL


class Route(str, Enum):
    CHAT = "chat"
    CALCULATOR = "calculator"


@dataclass(frozen=True)
class ConversationStats:
    total_messages: int
    user_messages: int
    assistant_messages: int
    summaries: int


@dataclass(frozen=True)
class ConversationState:
    messages: tuple[Message, ...] = ()
    sentiment: Sentiment = Sentiment.NEUTRAL
    calming_response: Optional[str] = None
    summaries: tuple[str, ...] = ()
    route: Optional[Route] = None
    domain_allowed: Optional[bool] = None

    # Fields a partial update may append to; every other field is replaced.
    APPEND_FIELDS = frozenset({"messages", "summaries"})
    # Fields that only make sense for the turn that produced them.
    TURN_FIELDS = ("route", "calming_response", "domain_allowed")

    def __post_init__(self) -> None:
        messages = tuple(self.messages)
        for message in messages:
            if not isinstance(message, Message):
                raise TypeError(f"messages must contain Message objects, got {message!r}")
        summaries = tuple(self.summaries)
        for summary in summaries:
            if not isinstance(summary, str):
                raise TypeError(f"summaries must contain str, got {summary!r}")
        object.__setattr__(self, "messages", messages)
        object.__setattr__(self, "summaries", summaries)
        object.__setattr__(self, "sentiment", Sentiment.coerce(self.sentiment))
        if self.route is not None:
            object.__setattr__(self, "route", Route(self.route))

    @classmethod
    def empty(cls) -> "ConversationState":
        return cls()

    def last_message(self, role: Optional[Role] = None) -> Optional[Message]:
        for message in reversed(self.messages):
            if role is None or message.role is role:
                return message
        return None

    def last_user_text(self) -> Optional[str]:
        message = self.last_message(Role.USER)
        return message.text if message else None

    def begin_turn(self, user_text: str) -> "ConversationState":
        """Append a user message and clear the per-turn fields."""
        cleared = {name: None for name in self.TURN_FIELDS}
        return replace(
            self,
            messages=self.messages + (Message.user(user_text),),
            **cleared,
        )

    def stats(self) -> ConversationStats:
        return ConversationStats(
            total_messages=len(self.messages),
            user_messages=sum(1 for m in self.messages if m.role is Role.USER),
            assistant_messages=sum(1 for m in self.messages if m.role is Role.ASSISTANT),
            summaries=len(self.summaries),
        )

    def to_dict(self) -> dict:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "sentiment": self.sentiment.value,
            "calming_response": self.calming_response,
            "summaries": list(self.summaries),
            "route": self.route.value if self.route else None,
            "domain_allowed": self.domain_allowed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConversationState":
        route = data.get("route")
        return cls(
            messages=tuple(Message.from_dict(m) for m in data.get("messages", [])),
            sentiment=Sentiment.coerce(data.get("sentiment")),
            calming_response=data.get("calming_response"),
            summaries=tuple(data.get("summaries", [])),
            route=Route(route) if route else None,
            domain_allowed=data.get("domain_allowed"),
        )
