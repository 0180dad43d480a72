"""Topological ordering of dependency graphs."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T", bound=Hashable)


@dataclass
class TopologicalSortResult(Generic[T]):
    """Nodes in dependency order and the nodes that could not be ordered."""

    sorted: list[T] = field(default_factory=list)
    error_set: dict[T, set[T]] = field(default_factory=dict)


def topological_sort(graph: Mapping[T, Iterable[T]]) -> TopologicalSortResult[T]:
    """Order the nodes of ``graph`` so that each node follows its dependencies.

    ``graph`` maps every node to the nodes it depends on. Nodes that take part
    in a cycle or depend on a missing node end up in ``error_set`` with the
    dependencies that could not be resolved.
    """
    remaining: dict[T, set[T]] = {
        node: set(edges) for node, edges in sorted(graph.items(), key=lambda kv: kv[0])
    }

    ready = [node for node, edges in remaining.items() if not edges]
    for node in ready:
        del remaining[node]

    ordered: list[T] = []
    while ready:
        done = ready.pop()
        ordered.append(done)

        freed = []
        for node, edges in remaining.items():
            if done in edges:
                edges.discard(done)
                if not edges:
                    freed.append(node)
        for node in freed:
            del remaining[node]
            ready.append(node)

    return TopologicalSortResult(sorted=ordered, error_set=remaining)