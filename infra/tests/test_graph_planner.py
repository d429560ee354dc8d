"""Tests for change planning between two declared graphs."""
from __future__ import annotations

import pytest

from ssmhost_infra.graph.errors import DanglingReferenceError
from ssmhost_infra.graph.models import Node, Ref, ResourceGraph, ResourceType
from ssmhost_infra.graph.planner import Action, Step, plan


def _graph(
    vpc_block: str = "10.0.0.0/16",
    subnet_block: str = "10.0.1.0/24",
    instance_type: str = "t3.micro",
    with_role: bool = False,
) -> ResourceGraph:
    nodes = [
        Node(ResourceType.VPC, "main", {"cidr_block": vpc_block, "tags": {"Name": "vpc"}}),
        Node(
            ResourceType.SUBNET,
            "a",
            {"vpc_id": Ref("aws_vpc.main"), "cidr_block": subnet_block},
        ),
        Node(ResourceType.SECURITY_GROUP, "web", {"vpc_id": Ref("aws_vpc.main")}),
        Node(
            ResourceType.INSTANCE,
            "host",
            {
                "ami": "ami-123",
                "instance_type": instance_type,
                "subnet_id": Ref("aws_subnet.a"),
                "vpc_security_group_ids": [Ref("aws_security_group.web")],
            },
        ),
    ]
    if with_role:
        nodes.append(Node(ResourceType.IAM_ROLE, "host", {"name": "host-role"}))
    return ResourceGraph(nodes)


def _actions(result_changes: tuple) -> dict[str, Action]:
    return {change.node_id: change.action for change in result_changes}


def test_identical_graphs_plan_nothing() -> None:
    result = plan(_graph(), _graph())
    assert result.is_empty
    assert result.steps == ()


def test_everything_is_created_from_empty() -> None:
    result = plan(ResourceGraph(), _graph())
    assert set(_actions(result.changes).values()) == {Action.CREATE}
    assert [step.node_id for step in result.steps] == [
        "aws_vpc.main",
        "aws_subnet.a",
        "aws_security_group.web",
        "aws_instance.host",
    ]


def test_mutable_change_updates_in_place() -> None:
    result = plan(_graph(), _graph(instance_type="t3.small"))
    host = next(c for c in result.changes if c.node_id == "aws_instance.host")
    assert host.action is Action.UPDATE
    assert host.attributes == ("instance_type",)
    assert result.steps == (Step("aws_instance.host", Action.UPDATE),)


def test_immutable_change_replaces_and_propagates() -> None:
    result = plan(_graph(), _graph(subnet_block="10.0.2.0/24"))
    actions = _actions(result.changes)
    assert actions["aws_vpc.main"] is Action.NO_OP
    assert actions["aws_security_group.web"] is Action.NO_OP
    assert actions["aws_subnet.a"] is Action.REPLACE
    # subnet_id is immutable on an instance, so the host follows the subnet.
    assert actions["aws_instance.host"] is Action.REPLACE


def test_replacement_destroys_dependents_first() -> None:
    result = plan(_graph(), _graph(vpc_block="10.1.0.0/16", subnet_block="10.1.1.0/24"))
    assert list(result.steps) == [
        Step("aws_instance.host", Action.DELETE),
        Step("aws_security_group.web", Action.DELETE),
        Step("aws_subnet.a", Action.DELETE),
        Step("aws_vpc.main", Action.DELETE),
        Step("aws_vpc.main", Action.CREATE),
        Step("aws_subnet.a", Action.CREATE),
        Step("aws_security_group.web", Action.CREATE),
        Step("aws_instance.host", Action.CREATE),
    ]


def test_removed_node_is_deleted() -> None:
    result = plan(_graph(with_role=True), _graph())
    assert result.changes[0].node_id == "aws_iam_role.host"
    assert result.changes[0].action is Action.DELETE
    assert result.summary()["delete"] == 1
    assert result.summary()["no-op"] == 4


def test_invalid_desired_graph_fails_before_planning() -> None:
    broken = ResourceGraph(
        [Node(ResourceType.SUBNET, "a", {"vpc_id": Ref("aws_vpc.gone"), "cidr_block": "10.0.1.0/24"})]
    )
    with pytest.raises(DanglingReferenceError):
        plan(_graph(), broken)
