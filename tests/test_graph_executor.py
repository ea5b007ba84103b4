import asyncio
from dataclasses import dataclass
from typing import Optional

import pytest

from convograph.application.graph.builder import GraphBuilder
from convograph.application.graph.edges import END, START
from convograph.application.graph.errors import (
    EdgeResolutionError,
    GraphError,
    GraphRecursionError,
    NodeExecutionError,
    RunCancelledError,
    StateMergeError,
)
from convograph.application.graph.executor import merge_state
from convograph.application.graph.node import Node


@dataclass(frozen=True)
class TraceState:
    trail: tuple = ()
    counter: int = 0
    flag: Optional[str] = None

    APPEND_FIELDS = frozenset({"trail"})

    def __post_init__(self):
        object.__setattr__(self, "trail", tuple(self.trail))
        if not isinstance(self.counter, int):
            raise TypeError("counter must be an int")


def visit(name, **extra):
    async def node(state):
        return {"trail": [name], **extra}

    node.__name__ = name
    return node


# ---------- merge_state ----------

def test_merge_appends_sequence_fields_and_replaces_others():
    state = TraceState(trail=("a",), counter=1)
    merged = merge_state(state, {"trail": ["b", "c"], "counter": 5})
    assert merged.trail == ("a", "b", "c")
    assert merged.counter == 5
    assert state.trail == ("a",)


def test_empty_update_returns_the_same_state():
    state = TraceState()
    assert merge_state(state, {}) is state
    assert merge_state(state, None) is state


def test_merge_rejects_unknown_fields():
    with pytest.raises(StateMergeError):
        merge_state(TraceState(), {"nope": 1}, "x")


def test_merge_rejects_scalar_for_append_field():
    with pytest.raises(StateMergeError):
        merge_state(TraceState(), {"trail": "abc"})


def test_merge_rejects_non_mapping_update():
    with pytest.raises(StateMergeError):
        merge_state(TraceState(), ["trail"])


def test_merge_surfaces_state_validation_errors():
    with pytest.raises(StateMergeError):
        merge_state(TraceState(), {"counter": "many"})


# ---------- execution ----------

@pytest.mark.anyio
async def test_nodes_run_in_edge_order():
    graph = (
        GraphBuilder()
        .add_node("a", visit("a"))
        .add_node("b", visit("b"))
        .add_node("c", visit("c"))
        .add_edge(START, "a")
        .add_edge("a", "b")
        .add_edge("b", "c")
        .add_edge("c", END)
        .compile()
    )
    final = await graph.ainvoke(TraceState())
    assert final.trail == ("a", "b", "c")


@pytest.mark.anyio
async def test_conditional_edges_see_the_post_merge_state():
    graph = (
        GraphBuilder()
        .add_node("decide", visit("decide", flag="left"))
        .add_node("left", visit("left"))
        .add_node("right", visit("right"))
        .add_edge(START, "decide")
        .add_conditional_edges(
            "decide",
            [(lambda s: s.flag == "left", "left")],
            default="right",
        )
        .add_edge("left", END)
        .add_edge("right", END)
        .compile()
    )
    final = await graph.ainvoke(TraceState())
    assert final.trail == ("decide", "left")


@pytest.mark.anyio
async def test_first_matching_predicate_wins_and_each_runs_once():
    seen = []

    def pred(label, result):
        def check(state):
            seen.append(label)
            return result
        return check

    graph = (
        GraphBuilder()
        .add_node("a", visit("a"))
        .add_node("x", visit("x"))
        .add_node("y", visit("y"))
        .add_edge(START, "a")
        .add_conditional_edges(
            "a",
            [(pred("p1", False), "x"), (pred("p2", True), "y"), (pred("p3", True), "x")],
            default=END,
        )
        .add_edge("x", END)
        .add_edge("y", END)
        .compile()
    )
    final = await graph.ainvoke(TraceState())
    assert final.trail == ("a", "y")
    assert seen == ["p1", "p2"]


@pytest.mark.anyio
async def test_astream_yields_one_event_per_step():
    graph = (
        GraphBuilder()
        .add_node("a", visit("a", counter=1))
        .add_node("b", visit("b"))
        .add_edge(START, "a")
        .add_edge("a", "b")
        .add_edge("b", END)
        .compile()
    )
    events = [event async for event in graph.astream(TraceState())]
    assert [(e.step, e.node) for e in events] == [(1, "a"), (2, "b")]
    assert dict(events[0].update) == {"trail": ["a"], "counter": 1}
    assert events[0].state.trail == ("a",)
    assert events[1].state.counter == 1


@pytest.mark.anyio
async def test_cycle_is_stopped_by_the_step_limit():
    graph = (
        GraphBuilder()
        .add_node("ping", visit("ping"))
        .add_node("pong", visit("pong"))
        .add_edge(START, "ping")
        .add_edge("ping", "pong")
        .add_conditional_edges("pong", [(lambda s: False, END)], default="ping")
        .compile(max_steps=5)
    )
    with pytest.raises(GraphRecursionError) as info:
        await graph.ainvoke(TraceState())
    err = info.value
    assert err.steps == 5
    assert err.next_node == "pong"
    assert err.state.trail == ("ping", "pong", "ping", "pong", "ping")
    assert "did not terminate" in str(err)


@pytest.mark.anyio
async def test_terminating_cycle_finishes_below_the_limit():
    async def tick(state):
        return {"counter": state.counter + 1}

    graph = (
        GraphBuilder()
        .add_node("tick", tick)
        .add_edge(START, "tick")
        .add_conditional_edges("tick", [(lambda s: s.counter >= 3, END)], default="tick")
        .compile(max_steps=3)
    )
    final = await graph.ainvoke(TraceState())
    assert final.counter == 3


class SlowNode(Node):
    def __init__(self, delay):
        self.delay = delay

    async def run(self, state):
        await asyncio.sleep(self.delay)
        return {"trail": ["slow"]}

    def fallback(self, state, error):
        return {"trail": ["fallback"], "flag": type(error).__name__}


@pytest.mark.anyio
async def test_timed_out_node_uses_its_fallback():
    graph = (
        GraphBuilder()
        .add_node("slow", SlowNode(5), timeout=0.05)
        .add_node("after", visit("after"))
        .add_edge(START, "slow")
        .add_edge("slow", "after")
        .add_edge("after", END)
        .compile()
    )
    final = await graph.ainvoke(TraceState())
    assert final.trail == ("fallback", "after")
    assert final.flag == "TimeoutError"


@pytest.mark.anyio
async def test_graph_wide_timeout_applies_without_a_node_override():
    graph = (
        GraphBuilder()
        .add_node("slow", SlowNode(5))
        .add_edge(START, "slow")
        .add_edge("slow", END)
        .compile(node_timeout=0.05)
    )
    final = await graph.ainvoke(TraceState())
    assert final.trail == ("fallback",)


@pytest.mark.anyio
async def test_node_override_beats_graph_wide_timeout():
    graph = (
        GraphBuilder()
        .add_node("slow", SlowNode(0.01), timeout=5)
        .add_edge(START, "slow")
        .add_edge("slow", END)
        .compile(node_timeout=0.001)
    )
    final = await graph.ainvoke(TraceState())
    assert final.trail == ("slow",)


@pytest.mark.anyio
async def test_escaping_exception_becomes_node_execution_error():
    async def boom(state):
        raise RuntimeError("kaput")

    graph = (
        GraphBuilder()
        .add_node("a", visit("a"))
        .add_node("boom", boom)
        .add_edge(START, "a")
        .add_edge("a", "boom")
        .add_edge("boom", END)
        .compile()
    )
    with pytest.raises(NodeExecutionError) as info:
        await graph.ainvoke(TraceState())
    assert info.value.node == "boom"
    assert info.value.state.trail == ("a",)
    assert isinstance(info.value.__cause__, RuntimeError)
    assert isinstance(info.value, GraphError)


@pytest.mark.anyio
async def test_raising_predicate_becomes_edge_resolution_error():
    def lookup(state):
        return {}["missing"]

    graph = (
        GraphBuilder()
        .add_node("a", visit("a", counter=1))
        .add_node("b", visit("b"))
        .add_edge(START, "a")
        .add_conditional_edges("a", [(lookup, "b")], default=END)
        .add_edge("b", END)
        .compile()
    )
    with pytest.raises(EdgeResolutionError) as info:
        await graph.ainvoke(TraceState())
    assert info.value.node == "a"
    assert info.value.state.trail == ("a",)
    assert info.value.state.counter == 1
    assert isinstance(info.value.__cause__, KeyError)
    assert isinstance(info.value, GraphError)


@pytest.mark.anyio
async def test_bad_update_aborts_the_run():
    async def bad(state):
        return {"unknown": 1}

    graph = GraphBuilder().add_node("bad", bad).add_edge(START, "bad").add_edge("bad", END).compile()
    with pytest.raises(StateMergeError):
        await graph.ainvoke(TraceState())


@pytest.mark.anyio
async def test_cancellation_is_checked_between_nodes():
    cancel = asyncio.Event()

    async def first(state):
        cancel.set()
        return {"trail": ["first"]}

    graph = (
        GraphBuilder()
        .add_node("first", first)
        .add_node("second", visit("second"))
        .add_edge(START, "first")
        .add_edge("first", "second")
        .add_edge("second", END)
        .compile()
    )
    with pytest.raises(RunCancelledError) as info:
        await graph.ainvoke(TraceState(), cancel_event=cancel)
    assert info.value.next_node == "second"
    assert info.value.state.trail == ("first",)


@pytest.mark.anyio
async def test_compiled_graph_is_reusable_across_concurrent_runs():
    async def slow_visit(state):
        await asyncio.sleep(0.01)
        return {"counter": state.counter + 1}

    graph = (
        GraphBuilder()
        .add_node("a", slow_visit)
        .add_node("b", slow_visit)
        .add_edge(START, "a")
        .add_edge("a", "b")
        .add_edge("b", END)
        .compile()
    )
    results = await asyncio.gather(
        graph.ainvoke(TraceState(counter=0)),
        graph.ainvoke(TraceState(counter=10)),
    )
    assert [r.counter for r in results] == [2, 12]
