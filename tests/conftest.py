# tests/conftest.py
"""
Shared fixtures: anyio on asyncio, and a scripted in-memory language model so
graph and node tests never reach a provider.
"""

import asyncio
from typing import Callable, Sequence, Union

import pytest

from convograph.domain.entities.message import Message
from convograph.domain.ports.llm_port import ILanguageModel

Script = Union[str, BaseException, Callable[[Sequence[Message]], str]]


# Make anyio run on asyncio
@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


class FakeLanguageModel(ILanguageModel):
    """Replies are chosen by the system prompt of each call.

    ``rules`` maps a substring of the system prompt to a reply: a string, an
    exception instance to raise, or a callable receiving the messages. Calls
    whose system prompt matches no rule get ``default``.
    """

    def __init__(self, rules: dict[str, Script] | None = None, default: Script = "ok",
                 delay: float = 0.0) -> None:
        self.rules = dict(rules or {})
        self.default = default
        self.delay = delay
        self.calls: list[list[Message]] = []

    async def invoke(self, messages: Sequence[Message]) -> str:
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        system = messages[0].text if messages else ""
        reply = self.default
        for needle, scripted in self.rules.items():
            if needle in system:
                reply = scripted
                break
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(messages)
        return reply

    def calls_matching(self, needle: str) -> list[list[Message]]:
        return [call for call in self.calls if call and needle in call[0].text]


@pytest.fixture
def fake_llm_factory():
    return FakeLanguageModel
