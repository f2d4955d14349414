"""Pure graph traversal over link edges.

No SQLite, no FastAPI: callers pass a neighbour function so the same
depth-first search serves the store-backed engine (one query per visited
node) and in-memory edge lists alike.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol, TypeVar

Neighbors = Callable[[str], Iterable[str]]


class _Edge(Protocol):
    source_work_item_id: str
    target_work_item_id: str
    link_type: str


E = TypeVar("E", bound=_Edge)


def path_exists(start_id: str, target_id: str, neighbors: Neighbors) -> bool:
    """True if *target_id* is reachable from *start_id* (a node reaches itself).

    Iterative DFS with a ``visited`` set, so pre-existing cycles in the
    traversed graph cannot cause unbounded work. O(V+E) over the reachable
    subgraph.
    """
    visited: set[str] = set()
    stack = [start_id]
    while stack:
        current = stack.pop()
        if current == target_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        for nxt in neighbors(current):
            if nxt not in visited:
                stack.append(nxt)
    return False


def would_create_cycle(source_id: str, target_id: str, neighbors: Neighbors) -> bool:
    """Check if adding the edge source_id -> target_id would close a cycle.

    The new edge closes a cycle exactly when source_id is already reachable
    from target_id.
    """
    return path_exists(target_id, source_id, neighbors)


def edge_neighbors(outgoing: Callable[[str], Iterable[E]], predicate: Callable[[E], bool] | None = None) -> Neighbors:
    """Build a neighbour function from an outgoing-edge lookup.

    *outgoing* returns the edges leaving a node; *predicate* selects which of
    them participate (for example a single link type). All edges are followed
    when it is ``None``.
    """

    def neighbors(node: str) -> list[str]:
        return [edge.target_work_item_id for edge in outgoing(node) if predicate is None or predicate(edge)]

    return neighbors


def link_type_predicate(link_type: str) -> Callable[[_Edge], bool]:
    return lambda edge: edge.link_type == link_type
