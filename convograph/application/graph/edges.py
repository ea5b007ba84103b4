"""
Edge table entries: where the executor goes after a node has run.
"""

from dataclasses import dataclass
from typing import Any, Callable

START = "__start__"
END = "__end__"

Predicate = Callable[[Any], bool]


@dataclass(frozen=True)
class StaticEdge:
    target: str

    @property
    def targets(self) -> tuple[str, ...]:
        return (self.target,)

    def resolve(self, state: Any) -> str:
        return self.target


@dataclass(frozen=True)
class ConditionalEdge:
    """Ordered (predicate, target) pairs with a mandatory default.

    Predicates are evaluated in declaration order against the post-merge state,
    each at most once; the first that holds wins.
    """

    branches: tuple[tuple[Predicate, str], ...]
    default: str

    @property
    def targets(self) -> tuple[str, ...]:
        return tuple(target for _, target in self.branches) + (self.default,)

    def resolve(self, state: Any) -> str:
        for predicate, target in self.branches:
            if predicate(state):
                return target
        return self.default


Edge = StaticEdge | ConditionalEdge
