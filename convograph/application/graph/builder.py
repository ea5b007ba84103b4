"""
Graph builder: collects nodes and edges, validates them, and compiles an
immutable CompiledGraph.

Usage mirrors the usual state-graph vocabulary::

    builder = GraphBuilder()
    builder.add_node("router", RouterNode())
    builder.add_node("calculator", CalculatorNode())
    builder.add_node("chatbot", ChatNode(llm))
    builder.add_edge(START, "router")
    builder.add_conditional_edges(
        "router",
        [(is_calculator_route, "calculator")],
        default="chatbot",
    )
    builder.add_edge("calculator", END)
    builder.add_edge("chatbot", END)
    graph = builder.compile(max_steps=25)
"""

from typing import Optional, Sequence

from convograph.application.graph.edges import (
    END,
    START,
    ConditionalEdge,
    Edge,
    Predicate,
    StaticEdge,
)
from convograph.application.graph.errors import GraphConfigurationError
from convograph.application.graph.executor import CompiledGraph, NodeSpec
from convograph.application.graph.node import Node, NodeFunction, as_node

DEFAULT_MAX_STEPS = 25

_RESERVED = frozenset({START, END})


class GraphBuilder:
    def __init__(self) -> None:
        self._nodes: dict[str, NodeSpec] = {}
        self._static: dict[str, list[StaticEdge]] = {}
        self._conditional: dict[str, list[ConditionalEdge]] = {}
        self._entry_point: Optional[str] = None

    def add_node(
        self,
        name: str,
        node: "Node | NodeFunction",
        *,
        timeout: Optional[float] = None,
    ) -> "GraphBuilder":
        """Register *node* under *name*.

        Args:
            name:    Unique node name. ``__start__`` and ``__end__`` are reserved.
            node:    A Node instance or an ``async def f(state) -> dict`` function.
            timeout: Seconds the node may run before its fallback is used.
                     Overrides the graph-wide ``node_timeout`` given to compile().
        """
        if not isinstance(name, str) or not name:
            raise GraphConfigurationError([f"node name must be a non-empty string, got {name!r}"])
        if name in _RESERVED:
            raise GraphConfigurationError([f"node name {name!r} is reserved"])
        if name in self._nodes:
            raise GraphConfigurationError([f"node {name!r} is already registered"])
        if timeout is not None and timeout <= 0:
            raise GraphConfigurationError([f"timeout for node {name!r} must be positive"])
        self._nodes[name] = NodeSpec(name, as_node(name, node), timeout)
        return self

    def set_entry_point(self, name: str) -> "GraphBuilder":
        if self._entry_point is not None and self._entry_point != name:
            raise GraphConfigurationError(
                [f"entry point already set to {self._entry_point!r}, cannot set {name!r}"]
            )
        self._entry_point = name
        return self

    def set_finish_point(self, name: str) -> "GraphBuilder":
        return self.add_edge(name, END)

    def add_edge(self, source: str, target: str) -> "GraphBuilder":
        """Unconditional transition from *source* to *target* (END terminates the run)."""
        if source == START:
            return self.set_entry_point(target)
        self._static.setdefault(source, []).append(StaticEdge(target))
        return self

    def add_conditional_edges(
        self,
        source: str,
        branches: Sequence[tuple[Predicate, str]],
        default: Optional[str] = None,
    ) -> "GraphBuilder":
        """Branch from *source* on the post-merge state.

        Args:
            source:   Node whose completion triggers the branch.
            branches: Ordered ``(predicate, target)`` pairs; the first predicate
                      returning True picks the target.
            default:  Target used when no predicate holds. Required.
        """
        self._conditional.setdefault(source, []).append(
            ConditionalEdge(tuple((predicate, target) for predicate, target in branches), default)
        )
        return self

    def compile(
        self,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
        node_timeout: Optional[float] = None,
    ) -> CompiledGraph:
        """Validate the graph and freeze it.

        Raises:
            GraphConfigurationError: listing every problem found.
        """
        problems: list[str] = []

        if not isinstance(max_steps, int) or isinstance(max_steps, bool) or max_steps < 1:
            problems.append(f"max_steps must be a positive integer, got {max_steps!r}")
        if node_timeout is not None and node_timeout <= 0:
            problems.append(f"node_timeout must be positive, got {node_timeout!r}")

        if self._entry_point is None:
            problems.append("no entry point set")
        elif self._entry_point not in self._nodes:
            problems.append(f"entry point {self._entry_point!r} is not a registered node")

        edges = self._collect_edges(problems)
        self._check_reachability(edges, problems)

        if problems:
            raise GraphConfigurationError(problems)

        return CompiledGraph(
            nodes=dict(self._nodes),
            edges=edges,
            entry_point=self._entry_point,
            max_steps=max_steps,
            node_timeout=node_timeout,
        )

    def _collect_edges(self, problems: list[str]) -> dict[str, Edge]:
        edges: dict[str, Edge] = {}

        for source in sorted(set(self._static) | set(self._conditional)):
            if source not in self._nodes:
                problems.append(f"edge source {source!r} is not a registered node")
                continue
            static = self._static.get(source, [])
            conditional = self._conditional.get(source, [])
            if static and conditional:
                problems.append(f"node {source!r} has both static and conditional edges")
                continue
            if len(static) > 1:
                targets = ", ".join(repr(e.target) for e in static)
                problems.append(f"node {source!r} has several static edges ({targets})")
                continue
            if len(conditional) > 1:
                problems.append(f"node {source!r} declares conditional edges more than once")
                continue
            edge: Edge = static[0] if static else conditional[0]
            if isinstance(edge, ConditionalEdge):
                self._check_conditional(source, edge, problems)
            for target in edge.targets:
                if target is not None and target != END and target not in self._nodes:
                    problems.append(f"edge {source!r} -> {target!r} targets an unknown node")
            edges[source] = edge

        for name in self._nodes:
            if name not in self._static and name not in self._conditional:
                problems.append(f"node {name!r} has no outgoing edge (use END to terminate)")
        return edges

    @staticmethod
    def _check_conditional(source: str, edge: ConditionalEdge, problems: list[str]) -> None:
        if edge.default is None:
            problems.append(f"conditional edges from {source!r} have no default target")
        seen: set[int] = set()
        for predicate, target in edge.branches:
            if not callable(predicate):
                problems.append(f"branch {source!r} -> {target!r} has a non-callable predicate")
            elif id(predicate) in seen:
                problems.append(
                    f"branch {source!r} -> {target!r} repeats an earlier predicate and can never fire"
                )
            seen.add(id(predicate))

    def _check_reachability(self, edges: dict[str, Edge], problems: list[str]) -> None:
        if self._entry_point not in self._nodes:
            return
        reached = {self._entry_point}
        pending = [self._entry_point]
        while pending:
            edge = edges.get(pending.pop())
            if edge is None:
                continue
            for target in edge.targets:
                if target in self._nodes and target not in reached:
                    reached.add(target)
                    pending.append(target)
        for name in self._nodes:
            if name not in reached:
                problems.append(f"node {name!r} is unreachable from entry point {self._entry_point!r}")
