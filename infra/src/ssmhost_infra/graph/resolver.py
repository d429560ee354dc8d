"""Dependency ordering over a declared resource graph.

All functions are pure: they read the graph and never touch the network.
Ties between independent nodes are broken by declaration order, so repeated
runs over the same declaration produce the same order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum

from ssmhost_infra.graph.errors import CycleError, DanglingReferenceError
from ssmhost_infra.graph.models import Node, ResourceGraph

logger: logging.Logger = logging.getLogger(__name__)


class _Mark(Enum):
    IN_PROGRESS = 1
    DONE = 2


def creation_order(graph: ResourceGraph) -> list[Node]:
    """Return the nodes ordered so that every node follows all it references.

    Depth-first topological sort. Roots are taken in declaration order and
    each node's dependencies in the order they are referenced. The walk keeps
    an explicit stack, so chain length is not bounded by the interpreter's
    recursion limit.

    Raises:
        DanglingReferenceError: If a node references an undeclared identifier.
        CycleError: If the references form a cycle.
    """
    marks: dict[str, _Mark] = {}
    path: list[str] = []
    order: list[Node] = []
    stack: list[tuple[Node, Iterator[str]]] = []

    def enter(node: Node) -> None:
        marks[node.id] = _Mark.IN_PROGRESS
        path.append(node.id)
        stack.append((node, iter(node.dependency_ids())))

    for root in graph:
        if root.id in marks:
            continue
        enter(root)
        while stack:
            node, pending = stack[-1]
            dependency = next(pending, None)
            if dependency is None:
                stack.pop()
                path.pop()
                marks[node.id] = _Mark.DONE
                order.append(node)
                continue
            if dependency not in graph:
                raise DanglingReferenceError(node.id, dependency)
            mark = marks.get(dependency)
            if mark is _Mark.DONE:
                continue
            if mark is _Mark.IN_PROGRESS:
                start = path.index(dependency)
                raise CycleError([*path[start:], dependency])
            enter(graph[dependency])

    logger.debug("creation_order_resolved", extra={"nodes": len(order)})
    return order


def destruction_order(graph: ResourceGraph) -> list[Node]:
    """Return the reverse of :func:`creation_order`."""
    return list(reversed(creation_order(graph)))


def dependencies(graph: ResourceGraph, node_id: str, transitive: bool = False) -> list[str]:
    """Return the identifiers ``node_id`` references, in creation order.

    With ``transitive=True`` the full closure is returned.
    """
    order = [node.id for node in creation_order(graph)]
    direct = set(graph[node_id].dependency_ids())
    if not transitive:
        return [candidate for candidate in order if candidate in direct]

    closure: set[str] = set()
    pending = list(direct)
    while pending:
        current = pending.pop()
        if current in closure:
            continue
        closure.add(current)
        pending.extend(graph[current].dependency_ids())
    return [candidate for candidate in order if candidate in closure]


def dependents(graph: ResourceGraph, node_id: str, transitive: bool = False) -> list[str]:
    """Return the identifiers that reference ``node_id``, in creation order."""
    order = creation_order(graph)
    found: set[str] = {node_id}
    result: list[str] = []
    for node in order:
        if node.id == node_id:
            continue
        referenced = set(node.dependency_ids())
        hit = referenced & found if transitive else referenced & {node_id}
        if hit:
            result.append(node.id)
            found.add(node.id)
    return result


def apply_levels(graph: ResourceGraph) -> list[list[str]]:
    """Group nodes into batches that can be applied concurrently.

    A node's level is one more than the highest level among its
    dependencies; nodes without dependencies are at level zero. Batches keep
    declaration order.
    """
    order = creation_order(graph)
    level: dict[str, int] = {}
    for node in order:
        level[node.id] = 1 + max((level[dep] for dep in node.dependency_ids()), default=-1)

    batches: list[list[str]] = [[] for _ in range(max(level.values(), default=-1) + 1)]
    for node in graph:
        batches[level[node.id]].append(node.id)
    return batches


def independent_subgraphs(graph: ResourceGraph) -> list[list[str]]:
    """Return the weakly connected components of the graph.

    Components share no edges and may be applied in parallel. They are
    listed by their first declared member; members keep declaration order.
    """
    creation_order(graph)

    neighbours: dict[str, set[str]] = {node.id: set() for node in graph}
    for node in graph:
        for dependency in node.dependency_ids():
            neighbours[node.id].add(dependency)
            neighbours[dependency].add(node.id)

    component_of: dict[str, int] = {}
    count = 0
    for node in graph:
        if node.id in component_of:
            continue
        pending = [node.id]
        while pending:
            current = pending.pop()
            if current in component_of:
                continue
            component_of[current] = count
            pending.extend(neighbours[current] - component_of.keys())
        count += 1

    components: list[list[str]] = [[] for _ in range(count)]
    for node in graph:
        components[component_of[node.id]].append(node.id)
    return components
