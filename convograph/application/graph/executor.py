"""
Compiled graph and its executor.

A run is strictly sequential: one node at a time, in the order the edge table
resolves. A CompiledGraph holds no per-run state, so independent runs may
share it concurrently as long as each brings its own state object.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, AsyncIterator, Generic, Mapping, Optional, TypeVar

from convograph.application.graph.edges import END, Edge
from convograph.application.graph.errors import (
    EdgeResolutionError,
    GraphRecursionError,
    NodeExecutionError,
    RunCancelledError,
    StateMergeError,
)
from convograph.application.graph.node import Node, StateUpdate

logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass(frozen=True)
class NodeSpec:
    name: str
    node: Node
    timeout: Optional[float] = None


@dataclass(frozen=True)
class StepEvent(Generic[S]):
    step: int
    node: str
    update: Mapping[str, Any]
    state: S


def merge_state(state: S, update: Optional[StateUpdate], node: str = "?") -> S:
    """Fold a node's partial update into a new state instance.

    The state must be a dataclass. Fields listed in its ``APPEND_FIELDS`` are
    concatenated, every other field is replaced. The state's own validation
    (``__post_init__``) runs on the result.

    Raises:
        StateMergeError: unknown field, non-sequence value for an append field,
                         or a value the state rejects.
    """
    if not update:
        return state
    if not isinstance(update, Mapping):
        raise StateMergeError(
            f"node {node!r} returned {type(update).__name__}, expected a mapping"
        )
    field_names = {f.name for f in dataclasses.fields(state)}
    append_fields = getattr(type(state), "APPEND_FIELDS", frozenset())

    changes: dict[str, Any] = {}
    for key, value in update.items():
        if key not in field_names:
            raise StateMergeError(f"node {node!r} returned unknown state field {key!r}")
        if key in append_fields:
            if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
                raise StateMergeError(
                    f"node {node!r} must return a list for append field {key!r}, "
                    f"got {type(value).__name__}"
                )
            changes[key] = tuple(getattr(state, key)) + tuple(value)
        else:
            changes[key] = value
    try:
        return dataclasses.replace(state, **changes)
    except (TypeError, ValueError) as exc:
        raise StateMergeError(f"node {node!r} returned an invalid update: {exc}") from exc


class CompiledGraph(Generic[S]):
    """Immutable, validated graph produced by GraphBuilder.compile()."""

    def __init__(
        self,
        nodes: Mapping[str, NodeSpec],
        edges: Mapping[str, Edge],
        entry_point: str,
        max_steps: int,
        node_timeout: Optional[float] = None,
    ) -> None:
        self._nodes = MappingProxyType(dict(nodes))
        self._edges = MappingProxyType(dict(edges))
        self._entry_point = entry_point
        self._max_steps = max_steps
        self._node_timeout = node_timeout

    @property
    def entry_point(self) -> str:
        return self._entry_point

    @property
    def max_steps(self) -> int:
        return self._max_steps

    @property
    def node_names(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    def successors(self, name: str) -> tuple[str, ...]:
        """All targets a node may hand over to, in declaration order (END included)."""
        return self._edges[name].targets

    async def ainvoke(
        self,
        state: S,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> S:
        """Run the graph to completion and return the final state."""
        final = state
        async for event in self.astream(state, cancel_event=cancel_event):
            final = event.state
        return final

    async def astream(
        self,
        state: S,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[StepEvent[S]]:
        """Run the graph, yielding a StepEvent after each node's update is merged.

        Raises:
            GraphRecursionError: more than ``max_steps`` nodes would run.
            RunCancelledError:   *cancel_event* was set between two nodes.
            NodeExecutionError:  an exception escaped a node.
            EdgeResolutionError: a routing predicate raised.
            StateMergeError:     a node returned an update that does not fit the state.
        """
        current = self._entry_point
        step = 0
        while current != END:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Run cancelled before node %r after %d step(s)", current, step)
                raise RunCancelledError(state, current)
            if step >= self._max_steps:
                logger.error("Graph did not terminate within %d steps (next: %r)", step, current)
                raise GraphRecursionError(state, step, current)

            spec = self._nodes[current]
            update = await self._run_node(spec, state)
            state = merge_state(state, update, spec.name)
            step += 1
            logger.debug("step %d: %s -> %s", step, spec.name, sorted(update or {}))
            yield StepEvent(step, spec.name, MappingProxyType(dict(update or {})), state)

            try:
                current = self._edges[current].resolve(state)
            except Exception as exc:
                logger.exception("Routing after node %r raised", spec.name)
                raise EdgeResolutionError(spec.name, state, exc) from exc

    async def _run_node(self, spec: NodeSpec, state: S) -> Optional[StateUpdate]:
        timeout = spec.timeout if spec.timeout is not None else self._node_timeout
        try:
            if timeout is None:
                return await spec.node.run(state)
            return await asyncio.wait_for(spec.node.run(state), timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Node %r timed out after %ss; using its fallback", spec.name, timeout)
            return spec.node.fallback(state, exc)
        except Exception as exc:
            logger.exception("Node %r raised instead of returning a fallback update", spec.name)
            raise NodeExecutionError(spec.name, state, exc) from exc
