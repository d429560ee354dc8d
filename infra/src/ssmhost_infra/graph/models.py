"""Declarative resource graph: typed nodes and the references between them.

A node is declared with a type tag, a local name and a mapping of attribute
names to values. A value is either a literal or a :class:`Ref` to another
node; refs may be nested inside lists and mappings (route entries, subnet id
lists). Every ref is a dependency edge from the declaring node to the
referenced one.

Example::

    graph = ResourceGraph()
    vpc = graph.add(Node(ResourceType.VPC, "main", {"cidr_block": "10.0.0.0/16"}))
    graph.add(
        Node(
            ResourceType.SUBNET,
            "private",
            {"vpc_id": vpc.ref(), "cidr_block": "10.0.2.0/24"},
        )
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, NamedTuple

from ssmhost_infra.graph.errors import DuplicateNodeError

logger: logging.Logger = logging.getLogger(__name__)


class ResourceType(StrEnum):
    """Resource type tags understood by the blueprint and validator."""

    VPC = "aws_vpc"
    SUBNET = "aws_subnet"
    INTERNET_GATEWAY = "aws_internet_gateway"
    ROUTE_TABLE = "aws_route_table"
    ROUTE_TABLE_ASSOCIATION = "aws_route_table_association"
    SECURITY_GROUP = "aws_security_group"
    IAM_ROLE = "aws_iam_role"
    IAM_ROLE_POLICY_ATTACHMENT = "aws_iam_role_policy_attachment"
    IAM_INSTANCE_PROFILE = "aws_iam_instance_profile"
    INSTANCE = "aws_instance"
    VPC_ENDPOINT = "aws_vpc_endpoint"


@dataclass(frozen=True)
class Ref:
    """A cross-reference to another node's computed attribute."""

    node_id: str
    attr: str = "id"

    def __str__(self) -> str:
        return f"{self.node_id}.{self.attr}"


class Reference(NamedTuple):
    """An outgoing edge: the top-level attribute holding it and its target."""

    attribute: str
    target: Ref


@dataclass(frozen=True)
class Node:
    """A declared resource.

    Attributes:
        type: Resource type tag, e.g. ``aws_vpc``.
        name: Local name, unique per type.
        attributes: Attribute values; literals or :class:`Ref` values. Held
            as a read-only mapping and left out of the hash, so nodes can be
            used in sets while nested values stay plain lists and dicts.
        depends_on: Explicit dependencies on node identifiers that are not
            expressed through any attribute.
    """

    type: str
    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)
    depends_on: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "depends_on", tuple(self.depends_on))

    @property
    def id(self) -> str:
        return f"{self.type}.{self.name}"

    def ref(self, attr: str = "id") -> Ref:
        """Return a reference to one of this node's attributes."""
        return Ref(self.id, attr)

    def references(self) -> list[Reference]:
        """Return every outgoing edge in declaration order.

        Explicit ``depends_on`` entries are reported under the ``depends_on``
        attribute.
        """
        found: list[Reference] = []
        for attribute, value in self.attributes.items():
            found.extend(Reference(attribute, ref) for ref in _iter_refs(value))
        found.extend(Reference("depends_on", Ref(node_id)) for node_id in self.depends_on)
        return found

    def dependency_ids(self) -> list[str]:
        """Return the distinct referenced node identifiers in declaration order."""
        return list(dict.fromkeys(ref.target.node_id for ref in self.references()))

    def target(self, attribute: str) -> str | None:
        """Return the node id referenced by a scalar attribute, if any."""
        value = self.attributes.get(attribute)
        return value.node_id if isinstance(value, Ref) else None

    def targets(self, attribute: str) -> list[str]:
        """Return the node ids referenced anywhere inside an attribute."""
        return [ref.node_id for ref in _iter_refs(self.attributes.get(attribute))]


def _iter_refs(value: Any) -> Iterator[Ref]:
    if isinstance(value, Ref):
        yield value
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _iter_refs(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_refs(item)


def resolve_refs(value: Any, known: Mapping[Ref, Any]) -> Any:
    """Return ``value`` with every nested :class:`Ref` replaced from ``known``.

    Mappings come back as dicts and sequences as lists.

    Raises:
        KeyError: If a ref has no entry in ``known``.
    """
    if isinstance(value, Ref):
        if value not in known:
            raise KeyError(f"no provisioned value for '{value}'")
        return known[value]
    if isinstance(value, Mapping):
        return {key: resolve_refs(item, known) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_refs(item, known) for item in value]
    return value


class ResourceGraph:
    """An ordered collection of declared nodes keyed by identifier.

    Iteration yields nodes in declaration order, which is the tie-break for
    every ordering the resolver produces.
    """

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._nodes: dict[str, Node] = {}
        for node in nodes:
            self.add(node)

    def add(self, node: Node) -> Node:
        """Declare a node and return it.

        Raises:
            DuplicateNodeError: If a node with the same identifier exists.
        """
        if node.id in self._nodes:
            raise DuplicateNodeError(node.id)
        self._nodes[node.id] = node
        logger.debug("node_declared", extra={"node_id": node.id})
        return node

    def of_type(self, type_: str) -> list[Node]:
        """Return the nodes of one type in declaration order."""
        return [node for node in self._nodes.values() if node.type == type_]

    @property
    def node_ids(self) -> list[str]:
        return list(self._nodes)

    def __getitem__(self, node_id: str) -> Node:
        return self._nodes[node_id]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)
