"""Errors raised while validating a declared resource graph.

Every error is raised by a pure validation pass, before any provisioning side
effect, and carries the identifiers needed to fix the declaration.
"""

from __future__ import annotations


class GraphError(Exception):
    """Base class for invalid resource graph declarations."""


class DuplicateNodeError(GraphError):
    """Two nodes were declared with the same identifier."""

    def __init__(self, node_id: str) -> None:
        self.node_id: str = node_id
        super().__init__(f"Node '{node_id}' is declared more than once.")


class DanglingReferenceError(GraphError):
    """A node references an identifier that is not declared in the graph."""

    def __init__(self, node_id: str, missing: str) -> None:
        self.node_id: str = node_id
        self.missing: str = missing
        super().__init__(f"Node '{node_id}' references undeclared node '{missing}'.")


class CycleError(GraphError):
    """The reference graph contains a cycle.

    ``cycle`` lists the participating node identifiers in reference order,
    starting and ending with the same node.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle: list[str] = cycle
        super().__init__(f"Reference cycle detected: {' -> '.join(cycle)}")


class InvalidRangeError(GraphError):
    """An address block is malformed or falls outside its parent block."""

    def __init__(self, block: str, reason: str, parent: str | None = None) -> None:
        self.block: str = block
        self.parent: str | None = parent
        self.reason: str = reason
        detail = f" (parent {parent})" if parent else ""
        super().__init__(f"Invalid address block '{block}'{detail}: {reason}")


class NetworkMismatchError(GraphError):
    """A node references resources that belong to different networks."""

    def __init__(self, node_id: str, expected: str, actual: str, via: str) -> None:
        self.node_id: str = node_id
        self.expected: str = expected
        self.actual: str = actual
        self.via: str = via
        super().__init__(
            f"Node '{node_id}' expects network '{expected}' but '{via}' "
            f"belongs to '{actual}'."
        )
