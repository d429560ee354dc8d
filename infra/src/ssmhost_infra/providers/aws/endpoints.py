"""AWS VPC interface endpoint implementation of SsmHostEndpoints."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pulumi
import pulumi_aws as aws

from ssmhost_infra import blueprint
from ssmhost_infra.components.endpoints import EndpointOutputs
from ssmhost_infra.graph.models import Ref, ResourceGraph, ResourceType, resolve_refs

logger: logging.Logger = logging.getLogger(__name__)


class AwsEndpointsArgs:
    """Arguments for the AWS interface endpoint component.

    Args:
        vpc_id: VPC the endpoints and their security group are created in.
        security_group: ``description``, ``ingress``, ``egress`` and ``tags``
            of the endpoint security group.
        endpoints: Endpoint settings keyed by short service name, e.g.
            ``ssm``. Each holds ``service_name``, ``vpc_endpoint_type``,
            ``private_dns_enabled``, ``subnet_ids``, ``security_group_ids``
            and ``tags``. Security group ids stay refs until the group exists.
    """

    def __init__(
        self,
        vpc_id: pulumi.Input[str],
        security_group: dict[str, Any],
        endpoints: dict[str, dict[str, Any]],
    ) -> None:
        self.vpc_id: pulumi.Input[str] = vpc_id
        self.security_group: dict[str, Any] = security_group
        self.endpoints: dict[str, dict[str, Any]] = endpoints

    @property
    def service_names(self) -> dict[str, str]:
        return {name: settings["service_name"] for name, settings in self.endpoints.items()}

    @classmethod
    def from_blueprint(
        cls,
        graph: ResourceGraph,
        known: Mapping[Ref, pulumi.Input[str]],
    ) -> AwsEndpointsArgs:
        """Read the endpoint group and endpoint nodes from a blueprint.

        Args:
            graph: Validated blueprint.
            known: Provisioned values for the VPC and subnets.
        """
        security_group = graph[blueprint.ENDPOINT_SG_ID].attributes
        endpoints: dict[str, dict[str, Any]] = {}
        for node in graph.of_type(ResourceType.VPC_ENDPOINT):
            attributes = node.attributes
            endpoints[node.name] = {
                "service_name": attributes["service_name"],
                "vpc_endpoint_type": attributes.get("vpc_endpoint_type", "Interface"),
                "private_dns_enabled": attributes.get("private_dns_enabled", True),
                "subnet_ids": resolve_refs(attributes.get("subnet_ids", []), known),
                "security_group_ids": list(attributes.get("security_group_ids", [])),
                "tags": dict(attributes.get("tags", {})),
            }
        return cls(
            vpc_id=resolve_refs(security_group["vpc_id"], known),
            security_group={
                "description": security_group["description"],
                "ingress": resolve_refs(security_group.get("ingress", []), known),
                "egress": resolve_refs(security_group.get("egress", []), known),
                "tags": dict(security_group.get("tags", {})),
            },
            endpoints=endpoints,
        )


class AwsEndpoints(pulumi.ComponentResource):
    """Interface endpoints with private DNS so the host reaches SSM privately."""

    def __init__(
        self,
        name: str,
        args: AwsEndpointsArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("ssmhost:aws:Endpoints", name, {}, opts)

        logger.debug(
            "provisioning_aws_endpoints",
            extra={"component": name, "services": sorted(args.endpoints)},
        )

        security_group = aws.ec2.SecurityGroup(
            f"{name}-sg",
            aws.ec2.SecurityGroupArgs(
                vpc_id=args.vpc_id,
                description=args.security_group["description"],
                ingress=[
                    aws.ec2.SecurityGroupIngressArgs(**rule)
                    for rule in args.security_group["ingress"]
                ],
                egress=[
                    aws.ec2.SecurityGroupEgressArgs(**rule)
                    for rule in args.security_group["egress"]
                ],
                tags=args.security_group["tags"],
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )
        known: dict[Ref, pulumi.Input[str]] = {Ref(blueprint.ENDPOINT_SG_ID): security_group.id}

        endpoint_ids: dict[str, pulumi.Output[str]] = {}
        for short_name, settings in args.endpoints.items():
            endpoint = aws.ec2.VpcEndpoint(
                f"{name}-{short_name}",
                aws.ec2.VpcEndpointArgs(
                    vpc_id=args.vpc_id,
                    service_name=settings["service_name"],
                    vpc_endpoint_type=settings["vpc_endpoint_type"],
                    subnet_ids=settings["subnet_ids"],
                    security_group_ids=resolve_refs(settings["security_group_ids"], known),
                    private_dns_enabled=settings["private_dns_enabled"],
                    tags=settings["tags"],
                ),
                opts=pulumi.ResourceOptions(parent=self),
            )
            endpoint_ids[short_name] = endpoint.id

        self._outputs: EndpointOutputs = EndpointOutputs(
            endpoint_ids=endpoint_ids,
            security_group_id=security_group.id,
        )
        self.register_outputs({"endpoint_ids": self._outputs.endpoint_ids})

    @property
    def outputs(self) -> EndpointOutputs:
        """Return the resolved endpoint outputs."""
        return self._outputs
