"""AWS VPC implementation of SsmHostNetwork."""

from __future__ import annotations

import logging
from typing import Any

import pulumi
import pulumi_aws as aws

from ssmhost_infra import blueprint
from ssmhost_infra.components.network import NetworkOutputs
from ssmhost_infra.graph.models import Ref, ResourceGraph, resolve_refs

logger: logging.Logger = logging.getLogger(__name__)


class AwsNetworkArgs:
    """Arguments for the AWS network component.

    Args:
        vpc_cidr: Address block of the VPC.
        public_subnet_cidr: Address block of the public subnet.
        private_subnet_cidr: Address block of the private subnet.
        availability_zone: Zone both subnets are placed in.
        enable_dns: ``enable_dns_support`` and ``enable_dns_hostnames``.
        map_public_ip: ``map_public_ip_on_launch`` per subnet node id.
        routes: Route entries per route table node id. Gateway targets are
            still refs; the component resolves them once the gateway exists.
        tags: Tags per resource, keyed by blueprint node id.
    """

    def __init__(
        self,
        vpc_cidr: str,
        public_subnet_cidr: str,
        private_subnet_cidr: str,
        availability_zone: str,
        enable_dns: dict[str, bool] | None = None,
        map_public_ip: dict[str, bool] | None = None,
        routes: dict[str, list[dict[str, Any]]] | None = None,
        tags: dict[str, dict[str, str]] | None = None,
    ) -> None:
        self.vpc_cidr: str = vpc_cidr
        self.public_subnet_cidr: str = public_subnet_cidr
        self.private_subnet_cidr: str = private_subnet_cidr
        self.availability_zone: str = availability_zone
        self.enable_dns: dict[str, bool] = enable_dns or {
            "enable_dns_support": True,
            "enable_dns_hostnames": True,
        }
        self.map_public_ip: dict[str, bool] = map_public_ip or {}
        self.routes: dict[str, list[dict[str, Any]]] = routes or {}
        self.tags: dict[str, dict[str, str]] = tags or {}

    @classmethod
    def from_blueprint(cls, graph: ResourceGraph) -> AwsNetworkArgs:
        """Read the network literals from a validated blueprint."""
        vpc = graph[blueprint.VPC_ID].attributes
        subnet_ids = (blueprint.PUBLIC_SUBNET_ID, blueprint.PRIVATE_SUBNET_ID)
        route_table_ids = (blueprint.PUBLIC_ROUTE_TABLE_ID, blueprint.PRIVATE_ROUTE_TABLE_ID)
        return cls(
            vpc_cidr=vpc["cidr_block"],
            public_subnet_cidr=graph[blueprint.PUBLIC_SUBNET_ID].attributes["cidr_block"],
            private_subnet_cidr=graph[blueprint.PRIVATE_SUBNET_ID].attributes["cidr_block"],
            availability_zone=graph[blueprint.PUBLIC_SUBNET_ID].attributes["availability_zone"],
            enable_dns={
                "enable_dns_support": vpc.get("enable_dns_support", True),
                "enable_dns_hostnames": vpc.get("enable_dns_hostnames", True),
            },
            map_public_ip={
                node_id: graph[node_id].attributes.get("map_public_ip_on_launch", False)
                for node_id in subnet_ids
            },
            routes={
                node_id: [dict(route) for route in graph[node_id].attributes.get("routes", [])]
                for node_id in route_table_ids
            },
            tags={node.id: dict(node.attributes.get("tags", {})) for node in graph},
        )


class AwsNetwork(pulumi.ComponentResource):
    """AWS VPC + subnets + IGW + route tables satisfying ``SsmHostNetwork``.

    With the default blueprint the public subnet routes to the internet
    gateway and the private subnet has no default route; the host reaches
    Systems Manager through interface endpoints instead.
    """

    def __init__(
        self,
        name: str,
        args: AwsNetworkArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("ssmhost:aws:Network", name, {}, opts)

        logger.debug("provisioning_aws_network", extra={"component": name, "cidr": args.vpc_cidr})

        vpc = aws.ec2.Vpc(
            f"{name}-vpc",
            aws.ec2.VpcArgs(
                cidr_block=args.vpc_cidr,
                enable_dns_support=args.enable_dns["enable_dns_support"],
                enable_dns_hostnames=args.enable_dns["enable_dns_hostnames"],
                tags=args.tags.get(blueprint.VPC_ID),
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        igw = aws.ec2.InternetGateway(
            f"{name}-igw",
            aws.ec2.InternetGatewayArgs(
                vpc_id=vpc.id,
                tags=args.tags.get(blueprint.INTERNET_GATEWAY_ID),
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )
        known: dict[Ref, pulumi.Input[str]] = {
            Ref(blueprint.VPC_ID): vpc.id,
            Ref(blueprint.INTERNET_GATEWAY_ID): igw.id,
        }

        public = aws.ec2.Subnet(
            f"{name}-public",
            aws.ec2.SubnetArgs(
                vpc_id=vpc.id,
                cidr_block=args.public_subnet_cidr,
                availability_zone=args.availability_zone,
                map_public_ip_on_launch=args.map_public_ip.get(blueprint.PUBLIC_SUBNET_ID, True),
                tags=args.tags.get(blueprint.PUBLIC_SUBNET_ID),
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        private = aws.ec2.Subnet(
            f"{name}-private",
            aws.ec2.SubnetArgs(
                vpc_id=vpc.id,
                cidr_block=args.private_subnet_cidr,
                availability_zone=args.availability_zone,
                map_public_ip_on_launch=args.map_public_ip.get(blueprint.PRIVATE_SUBNET_ID, False),
                tags=args.tags.get(blueprint.PRIVATE_SUBNET_ID),
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        route_tables: list[aws.ec2.RouteTable] = []
        for suffix, table_id, subnet in (
            ("public", blueprint.PUBLIC_ROUTE_TABLE_ID, public),
            ("private", blueprint.PRIVATE_ROUTE_TABLE_ID, private),
        ):
            route_table = aws.ec2.RouteTable(
                f"{name}-{suffix}-rt",
                aws.ec2.RouteTableArgs(
                    vpc_id=vpc.id,
                    routes=[
                        aws.ec2.RouteTableRouteArgs(**route)
                        for route in resolve_refs(args.routes.get(table_id, []), known)
                    ],
                    tags=args.tags.get(table_id),
                ),
                opts=pulumi.ResourceOptions(parent=self),
            )
            aws.ec2.RouteTableAssociation(
                f"{name}-{suffix}-rta",
                aws.ec2.RouteTableAssociationArgs(subnet_id=subnet.id, route_table_id=route_table.id),
                opts=pulumi.ResourceOptions(parent=self),
            )
            route_tables.append(route_table)

        self._outputs: NetworkOutputs = NetworkOutputs(
            vpc_id=vpc.id,
            public_subnet_id=public.id,
            private_subnet_id=private.id,
            route_table_ids=[table.id for table in route_tables],
        )

        self.register_outputs(
            {
                "vpc_id": self._outputs.vpc_id,
                "public_subnet_id": self._outputs.public_subnet_id,
                "private_subnet_id": self._outputs.private_subnet_id,
            }
        )

    @property
    def outputs(self) -> NetworkOutputs:
        """Return the resolved network outputs."""
        return self._outputs
