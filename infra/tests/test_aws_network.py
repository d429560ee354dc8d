"""Unit tests for the AWS network component using Pulumi mocks."""
from __future__ import annotations

import pulumi
from pulumi.runtime import Mocks


class SsmHostMocks(Mocks):
    def __init__(self) -> None:
        super().__init__()
        self.inputs: dict[str, dict[str, object]] = {}

    def new_resource(
        self, args: pulumi.runtime.MockResourceArgs
    ) -> tuple[str, dict[str, object]]:
        self.inputs[args.name] = dict(args.inputs)
        return (f"{args.name}-id", args.inputs)

    def call(
        self, args: pulumi.runtime.MockCallArgs
    ) -> tuple[dict[str, object], list[tuple[str, str]]]:
        return ({}, [])


pulumi.runtime.set_mocks(SsmHostMocks())

from ssmhost_infra import blueprint  # noqa: E402
from ssmhost_infra.blueprint import build_blueprint  # noqa: E402
from ssmhost_infra.config import StackConfig  # noqa: E402
from ssmhost_infra.graph.models import Ref  # noqa: E402
from ssmhost_infra.providers.aws.network import AwsNetwork, AwsNetworkArgs  # noqa: E402


def _args() -> AwsNetworkArgs:
    return AwsNetworkArgs.from_blueprint(build_blueprint(StackConfig()))


def test_network_args_read_from_blueprint() -> None:
    args = _args()
    assert args.vpc_cidr == "10.0.0.0/16"
    assert args.public_subnet_cidr == "10.0.1.0/24"
    assert args.private_subnet_cidr == "10.0.2.0/24"
    assert args.availability_zone == "us-west-2a"
    assert args.tags["aws_vpc.main"]["Name"] == "ssmhost-vpc"
    assert args.routes[blueprint.PUBLIC_ROUTE_TABLE_ID] == [
        {"cidr_block": "0.0.0.0/0", "gateway_id": Ref(blueprint.INTERNET_GATEWAY_ID)}
    ]
    assert args.routes[blueprint.PRIVATE_ROUTE_TABLE_ID] == []
    assert args.map_public_ip == {blueprint.PUBLIC_SUBNET_ID: True, blueprint.PRIVATE_SUBNET_ID: False}


def test_network_has_public_and_private_route_tables() -> None:
    pulumi.runtime.set_mocks(SsmHostMocks())
    net = AwsNetwork("test-net", _args())
    assert len(net.outputs.route_table_ids) == 2


@pulumi.runtime.test
def test_network_vpc_id_is_set() -> None:
    pulumi.runtime.set_mocks(SsmHostMocks())
    net = AwsNetwork("test-net2", _args())

    def check(vpc_id: str) -> None:
        assert vpc_id

    return net.outputs.vpc_id.apply(check)


@pulumi.runtime.test
def test_network_public_subnet_is_set() -> None:
    pulumi.runtime.set_mocks(SsmHostMocks())
    net = AwsNetwork("test-net3", _args())

    def check(subnet_id: str) -> None:
        assert subnet_id == "test-net3-public-id"

    return net.outputs.public_subnet_id.apply(check)


@pulumi.runtime.test
def test_network_private_subnet_is_set() -> None:
    pulumi.runtime.set_mocks(SsmHostMocks())
    net = AwsNetwork("test-net4", _args())

    def check(subnet_id: str) -> None:
        assert subnet_id == "test-net4-private-id"

    return net.outputs.private_subnet_id.apply(check)


@pulumi.runtime.test
def test_network_routes_follow_blueprint() -> None:
    mocks = SsmHostMocks()
    pulumi.runtime.set_mocks(mocks)
    args = _args()
    args.routes[blueprint.PRIVATE_ROUTE_TABLE_ID] = [
        {"cidr_block": "192.168.0.0/16", "gateway_id": Ref(blueprint.INTERNET_GATEWAY_ID)}
    ]
    net = AwsNetwork("test-net5", args)

    def check(_: list[str]) -> None:
        (public_route,) = mocks.inputs["test-net5-public-rt"]["routes"]
        assert "0.0.0.0/0" in public_route.values()
        assert "test-net5-igw-id" in public_route.values()
        (private_route,) = mocks.inputs["test-net5-private-rt"]["routes"]
        assert "192.168.0.0/16" in private_route.values()
        assert mocks.inputs["test-net5-private-rt"]["tags"]["Name"] == "ssmhost-private-rt"

    return pulumi.Output.all(*net.outputs.route_table_ids).apply(check)
