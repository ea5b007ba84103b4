"""
Errors raised by the graph engine.

Build-time problems surface as GraphConfigurationError before any run starts.
Run-time errors abort a single run and carry the state reached so far so the
caller can inspect or keep it.
"""

from typing import Any, Iterable, Optional


class GraphError(Exception):
    """Base class for every error raised by the graph engine."""


class GraphConfigurationError(GraphError):
    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid graph: " + "; ".join(self.problems))


class StateMergeError(GraphError):
    """A node returned a partial update that cannot be merged into the state."""


class _RunError(GraphError):
    def __init__(self, message: str, state: Any) -> None:
        super().__init__(message)
        self.state = state


class GraphRecursionError(_RunError):
    """The run exceeded its step limit: the graph did not terminate."""

    def __init__(self, state: Any, steps: int, next_node: str) -> None:
        super().__init__(
            f"Graph did not terminate: step limit of {steps} reached "
            f"before running {next_node!r}",
            state,
        )
        self.steps = steps
        self.next_node = next_node


class RunCancelledError(_RunError):
    def __init__(self, state: Any, next_node: str) -> None:
        super().__init__(f"Run cancelled before node {next_node!r}", state)
        self.next_node = next_node


class NodeExecutionError(_RunError):
    """An exception escaped a node instead of being turned into a fallback update."""

    def __init__(self, node: str, state: Any, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Node {node!r} raised {type(cause).__name__}: {cause}", state)
        self.node = node


class EdgeResolutionError(_RunError):
    """A routing predicate raised while choosing the node after *node*."""

    def __init__(self, node: str, state: Any, cause: Optional[BaseException] = None) -> None:
        super().__init__(
            f"Routing after node {node!r} raised {type(cause).__name__}: {cause}", state
        )
        self.node = node
