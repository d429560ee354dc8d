"""Pulumi stack entry point for the SSM host infrastructure."""

from __future__ import annotations

import logging

import pulumi
import structlog

from ssmhost_infra import blueprint
from ssmhost_infra.blueprint import build_blueprint
from ssmhost_infra.config import StackConfig
from ssmhost_infra.graph.models import Ref, ResourceGraph
from ssmhost_infra.graph.resolver import apply_levels, independent_subgraphs
from ssmhost_infra.graph.validate import validate
from ssmhost_infra.providers.aws.compute import AwsCompute, AwsComputeArgs
from ssmhost_infra.providers.aws.endpoints import AwsEndpoints, AwsEndpointsArgs
from ssmhost_infra.providers.aws.identity import AwsIdentity, AwsIdentityArgs
from ssmhost_infra.providers.aws.network import AwsNetwork, AwsNetworkArgs

logger: logging.Logger = logging.getLogger(__name__)


class SsmHostStack:
    """Validates the declared graph, then provisions it on AWS."""

    def __init__(self, config: StackConfig) -> None:
        """Initialise the stack with resolved configuration."""
        self._config: StackConfig = config

    def plan(self) -> ResourceGraph:
        """Build and validate the blueprint without provisioning anything.

        Raises:
            GraphError: If the declaration is invalid.
        """
        graph = build_blueprint(self._config)
        order = validate(graph)
        logger.info(
            "stack_plan_resolved",
            extra={
                "creation_order": [node.id for node in order],
                "apply_levels": apply_levels(graph),
                "independent_subgraphs": len(independent_subgraphs(graph)),
            },
        )
        return graph

    def run(self) -> None:
        """Provision the full infrastructure stack."""
        logger.info(
            "stack_run_started",
            extra={"project": self._config.project_name, "region": self._config.region},
        )
        graph = self.plan()
        config = self._config
        prefix = f"{config.project_name}-{config.environment}"

        network = AwsNetwork(f"{prefix}-network", AwsNetworkArgs.from_blueprint(graph))
        identity = AwsIdentity(f"{prefix}-identity", AwsIdentityArgs.from_blueprint(graph))

        # Provisioned values for the refs that cross component boundaries.
        known: dict[Ref, pulumi.Input[str]] = {
            Ref(blueprint.VPC_ID): network.outputs.vpc_id,
            Ref(blueprint.PUBLIC_SUBNET_ID): network.outputs.public_subnet_id,
            Ref(blueprint.PRIVATE_SUBNET_ID): network.outputs.private_subnet_id,
            Ref(blueprint.PROFILE_ID, "name"): identity.outputs.instance_profile_name,
        }

        depends_on: list[pulumi.Resource] = [identity]
        endpoints: AwsEndpoints | None = None
        if config.enable_ssm_endpoints:
            endpoints = AwsEndpoints(
                f"{prefix}-endpoints",
                AwsEndpointsArgs.from_blueprint(graph, known),
            )
            depends_on.append(endpoints)

        compute = AwsCompute(
            f"{prefix}-compute",
            AwsComputeArgs.from_blueprint(graph, known),
            opts=pulumi.ResourceOptions(depends_on=depends_on),
        )

        pulumi.export("vpc_id", network.outputs.vpc_id)
        pulumi.export("public_subnet_id", network.outputs.public_subnet_id)
        pulumi.export("private_subnet_id", network.outputs.private_subnet_id)
        pulumi.export("instance_id", compute.outputs.instance_id)
        pulumi.export("instance_private_ip", compute.outputs.private_ip)
        pulumi.export("instance_profile_name", identity.outputs.instance_profile_name)
        pulumi.export("role_arn", identity.outputs.role_arn)
        pulumi.export(
            "ssm_endpoint_ids",
            list(endpoints.outputs.endpoint_ids.values()) if endpoints else [],
        )
        if compute.outputs.public_ip is not None:
            pulumi.export("instance_public_ip", compute.outputs.public_ip)


if __name__ == "__main__":
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.INFO))
    SsmHostStack(config=StackConfig.load()).run()
