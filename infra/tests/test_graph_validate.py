"""Tests for whole-graph validation."""
from __future__ import annotations

import pytest

from ssmhost_infra.graph.errors import (
    CycleError,
    DanglingReferenceError,
    InvalidRangeError,
    NetworkMismatchError,
)
from ssmhost_infra.graph.models import Node, Ref, ResourceGraph, ResourceType
from ssmhost_infra.graph.validate import validate


def _vpc(name: str, block: str) -> Node:
    return Node(ResourceType.VPC, name, {"cidr_block": block})


def _subnet(name: str, vpc: str, block: str) -> Node:
    return Node(ResourceType.SUBNET, name, {"vpc_id": Ref(f"aws_vpc.{vpc}"), "cidr_block": block})


def _sg(name: str, vpc: str) -> Node:
    return Node(ResourceType.SECURITY_GROUP, name, {"vpc_id": Ref(f"aws_vpc.{vpc}")})


def _instance(subnet: str, *groups: str) -> Node:
    return Node(
        ResourceType.INSTANCE,
        "host",
        {
            "subnet_id": Ref(f"aws_subnet.{subnet}"),
            "vpc_security_group_ids": [Ref(f"aws_security_group.{g}") for g in groups],
        },
    )


def test_valid_graph_returns_creation_order() -> None:
    graph = ResourceGraph(
        [
            _instance("a", "web"),
            _vpc("main", "10.0.0.0/16"),
            _subnet("a", "main", "10.0.1.0/24"),
            _sg("web", "main"),
        ]
    )
    order = [node.id for node in validate(graph)]
    assert order == ["aws_vpc.main", "aws_subnet.a", "aws_security_group.web", "aws_instance.host"]


def test_dangling_reference_is_reported_first() -> None:
    graph = ResourceGraph([_subnet("a", "missing", "10.0.1.0/24")])
    with pytest.raises(DanglingReferenceError) as excinfo:
        validate(graph)
    assert excinfo.value.missing == "aws_vpc.missing"


def test_cycle_is_reported() -> None:
    graph = ResourceGraph(
        [
            Node(ResourceType.SECURITY_GROUP, "a", {"ingress": [{"security_groups": [Ref("aws_security_group.b")]}]}),
            Node(ResourceType.SECURITY_GROUP, "b", {"ingress": [{"security_groups": [Ref("aws_security_group.a")]}]}),
        ]
    )
    with pytest.raises(CycleError):
        validate(graph)


def test_subnet_outside_vpc_block() -> None:
    graph = ResourceGraph([_vpc("main", "10.0.0.0/16"), _subnet("a", "main", "10.1.0.0/24")])
    with pytest.raises(InvalidRangeError) as excinfo:
        validate(graph)
    assert excinfo.value.block == "10.1.0.0/24"
    assert excinfo.value.parent == "10.0.0.0/16"


def test_malformed_subnet_block() -> None:
    graph = ResourceGraph([_vpc("main", "10.0.0.0/16"), _subnet("a", "main", "10.0.1.7/24")])
    with pytest.raises(InvalidRangeError):
        validate(graph)


def test_overlapping_subnets_in_one_vpc() -> None:
    graph = ResourceGraph(
        [
            _vpc("main", "10.0.0.0/16"),
            _subnet("a", "main", "10.0.0.0/23"),
            _subnet("b", "main", "10.0.1.0/24"),
        ]
    )
    with pytest.raises(InvalidRangeError) as excinfo:
        validate(graph)
    assert "aws_subnet.b" in excinfo.value.reason
    assert "aws_subnet.a" in excinfo.value.reason


def test_overlapping_subnets_sharing_route_table() -> None:
    graph = ResourceGraph(
        [
            _vpc("one", "10.0.0.0/16"),
            _vpc("two", "10.0.0.0/16"),
            _subnet("a", "one", "10.0.1.0/24"),
            _subnet("b", "two", "10.0.1.0/24"),
            Node(ResourceType.ROUTE_TABLE, "shared", {"vpc_id": Ref("aws_vpc.one")}),
            Node(
                ResourceType.ROUTE_TABLE_ASSOCIATION,
                "a",
                {"subnet_id": Ref("aws_subnet.a"), "route_table_id": Ref("aws_route_table.shared")},
            ),
            Node(
                ResourceType.ROUTE_TABLE_ASSOCIATION,
                "b",
                {"subnet_id": Ref("aws_subnet.b"), "route_table_id": Ref("aws_route_table.shared")},
            ),
        ]
    )
    with pytest.raises(InvalidRangeError):
        validate(graph)


def test_instance_security_group_from_other_vpc() -> None:
    graph = ResourceGraph(
        [
            _vpc("main", "10.0.0.0/16"),
            _vpc("other", "10.1.0.0/16"),
            _subnet("a", "main", "10.0.1.0/24"),
            _sg("foreign", "other"),
            _instance("a", "foreign"),
        ]
    )
    with pytest.raises(NetworkMismatchError) as excinfo:
        validate(graph)
    assert excinfo.value.node_id == "aws_instance.host"
    assert excinfo.value.expected == "aws_vpc.main"
    assert excinfo.value.actual == "aws_vpc.other"
    assert excinfo.value.via == "aws_security_group.foreign"


def test_endpoint_subnet_from_other_vpc() -> None:
    graph = ResourceGraph(
        [
            _vpc("main", "10.0.0.0/16"),
            _vpc("other", "10.1.0.0/16"),
            _subnet("b", "other", "10.1.1.0/24"),
            Node(
                ResourceType.VPC_ENDPOINT,
                "ssm",
                {"vpc_id": Ref("aws_vpc.main"), "subnet_ids": [Ref("aws_subnet.b")]},
            ),
        ]
    )
    with pytest.raises(NetworkMismatchError):
        validate(graph)


def test_malformed_vpc_block_without_subnets() -> None:
    graph = ResourceGraph([_vpc("main", "10.0.0.0")])
    with pytest.raises(InvalidRangeError) as excinfo:
        validate(graph)
    assert excinfo.value.block == "10.0.0.0"


def test_route_table_association_across_vpcs() -> None:
    graph = ResourceGraph(
        [
            _vpc("main", "10.0.0.0/16"),
            _vpc("other", "10.1.0.0/16"),
            _subnet("a", "main", "10.0.1.0/24"),
            Node(ResourceType.ROUTE_TABLE, "foreign", {"vpc_id": Ref("aws_vpc.other")}),
            Node(
                ResourceType.ROUTE_TABLE_ASSOCIATION,
                "a",
                {"subnet_id": Ref("aws_subnet.a"), "route_table_id": Ref("aws_route_table.foreign")},
            ),
        ]
    )
    with pytest.raises(NetworkMismatchError) as excinfo:
        validate(graph)
    assert excinfo.value.node_id == "aws_route_table_association.a"
    assert excinfo.value.expected == "aws_vpc.other"
    assert excinfo.value.actual == "aws_vpc.main"
    assert excinfo.value.via == "aws_subnet.a"
