"""Whole-graph validation run before any resource is provisioned."""

from __future__ import annotations

import itertools
import logging

from ssmhost_infra.graph import cidr
from ssmhost_infra.graph.errors import (
    DanglingReferenceError,
    InvalidRangeError,
    NetworkMismatchError,
)
from ssmhost_infra.graph.models import Node, ResourceGraph, ResourceType
from ssmhost_infra.graph.resolver import creation_order

logger: logging.Logger = logging.getLogger(__name__)


def validate(graph: ResourceGraph) -> list[Node]:
    """Check every structural invariant and return the creation order.

    Checks run in a fixed order: references, cycles, VPC and subnet ranges,
    subnet overlap, then network membership of instances, endpoints and
    route table associations.

    Raises:
        DanglingReferenceError, CycleError, InvalidRangeError,
        NetworkMismatchError: On the first violation found.
    """
    _check_references(graph)
    order = creation_order(graph)
    _check_subnet_ranges(graph)
    _check_route_table_siblings(graph)
    _check_network_membership(graph)
    logger.info(
        "graph_validated",
        extra={"nodes": len(order), "order": [node.id for node in order]},
    )
    return order


def _check_references(graph: ResourceGraph) -> None:
    for node in graph:
        for dependency in node.dependency_ids():
            if dependency not in graph:
                raise DanglingReferenceError(node.id, dependency)


def _literal_block(node: Node) -> str | None:
    value = node.attributes.get("cidr_block")
    return value if isinstance(value, str) else None


def _check_subnet_ranges(graph: ResourceGraph) -> None:
    for vpc in graph.of_type(ResourceType.VPC):
        block = _literal_block(vpc)
        if block is not None:
            cidr.parse_block(block)

    by_vpc: dict[str, list[Node]] = {}
    for subnet in graph.of_type(ResourceType.SUBNET):
        block = _literal_block(subnet)
        if block is None:
            continue
        cidr.parse_block(block)
        vpc_id = subnet.target("vpc_id")
        if vpc_id is None:
            continue
        parent = _literal_block(graph[vpc_id])
        if parent is not None:
            cidr.require_within(parent, block)
        by_vpc.setdefault(vpc_id, []).append(subnet)

    for subnets in by_vpc.values():
        _require_disjoint_subnets(subnets)


def _check_route_table_siblings(graph: ResourceGraph) -> None:
    by_table: dict[str, list[Node]] = {}
    for association in graph.of_type(ResourceType.ROUTE_TABLE_ASSOCIATION):
        table_id = association.target("route_table_id")
        subnet_id = association.target("subnet_id")
        if table_id is None or subnet_id is None:
            continue
        by_table.setdefault(table_id, []).append(graph[subnet_id])

    for subnets in by_table.values():
        _require_disjoint_subnets([s for s in subnets if _literal_block(s) is not None])


def _require_disjoint_subnets(subnets: list[Node]) -> None:
    for first, second in itertools.combinations(subnets, 2):
        first_block, second_block = _literal_block(first), _literal_block(second)
        if first_block is None or second_block is None:
            continue
        if cidr.overlaps(first_block, second_block):
            raise InvalidRangeError(
                second_block,
                f"subnet '{second.id}' overlaps subnet '{first.id}' ({first_block})",
            )


def _network_of(graph: ResourceGraph, node_id: str) -> str | None:
    node = graph[node_id]
    if node.type == ResourceType.VPC:
        return node.id
    return node.target("vpc_id")


def _check_network_membership(graph: ResourceGraph) -> None:
    for instance in graph.of_type(ResourceType.INSTANCE):
        subnet_id = instance.target("subnet_id")
        if subnet_id is None:
            continue
        expected = _network_of(graph, subnet_id)
        if expected is None:
            continue
        _require_same_network(
            graph, instance, expected, instance.targets("vpc_security_group_ids")
        )

    for endpoint in graph.of_type(ResourceType.VPC_ENDPOINT):
        expected = endpoint.target("vpc_id")
        if expected is None:
            continue
        members = endpoint.targets("subnet_ids") + endpoint.targets("security_group_ids")
        _require_same_network(graph, endpoint, expected, members)

    for association in graph.of_type(ResourceType.ROUTE_TABLE_ASSOCIATION):
        table_id = association.target("route_table_id")
        subnet_id = association.target("subnet_id")
        if table_id is None or subnet_id is None:
            continue
        expected = _network_of(graph, table_id)
        if expected is None:
            continue
        _require_same_network(graph, association, expected, [subnet_id])


def _require_same_network(
    graph: ResourceGraph, node: Node, expected: str, members: list[str]
) -> None:
    for member in members:
        actual = _network_of(graph, member)
        if actual is not None and actual != expected:
            raise NetworkMismatchError(node.id, expected, actual, via=member)
