"""
The node contract of the graph engine.

A node reads the current (frozen) state and returns a partial update: a mapping
naming only the fields it changes. Sequence fields in the update are appended by
the executor, every other field replaces the previous value.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Mapping

from convograph.application.graph.errors import GraphConfigurationError

StateUpdate = Mapping[str, Any]
NodeFunction = Callable[[Any], Awaitable[StateUpdate]]


class Node(ABC):
    """Asynchronous unit of work in a graph.

    Implementations catch failures of their own external calls and express them
    as an ordinary update. ``fallback`` is what the executor falls back to when
    the node does not finish within its timeout.
    """

    @abstractmethod
    async def run(self, state: Any) -> StateUpdate:
        ...

    def fallback(self, state: Any, error: BaseException) -> StateUpdate:
        return {}


class FunctionNode(Node):
    """Adapts a plain coroutine function to the Node contract."""

    def __init__(self, func: NodeFunction) -> None:
        self._func = func

    async def run(self, state: Any) -> StateUpdate:
        return await self._func(state)

    def __repr__(self) -> str:
        return f"FunctionNode({getattr(self._func, '__name__', self._func)!r})"


def as_node(name: str, obj: "Node | NodeFunction") -> Node:
    if isinstance(obj, Node):
        return obj
    if inspect.iscoroutinefunction(obj):
        return FunctionNode(obj)
    raise GraphConfigurationError(
        [f"node {name!r} must be a Node or an async function, got {obj!r}"]
    )
