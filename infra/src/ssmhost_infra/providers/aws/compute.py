"""AWS EC2 implementation of SsmHostCompute."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pulumi
import pulumi_aws as aws

from ssmhost_infra import blueprint
from ssmhost_infra.components.compute import ComputeOutputs
from ssmhost_infra.graph.models import Ref, ResourceGraph, resolve_refs

logger: logging.Logger = logging.getLogger(__name__)

_AMI_NAME_PATTERN = "al2023-ami-2023.*-x86_64"


class AwsComputeArgs:
    """Arguments for the AWS EC2 host component.

    Args:
        vpc_id: VPC the host security group is created in.
        subnet_id: Subnet the host is launched into.
        instance_profile_name: Instance profile bound to the host.
        instance_type: EC2 size class.
        ami_id: Machine image; the latest Amazon Linux 2023 image when empty.
        user_data: Boot-time initialisation script.
        root_volume: ``volume_size``, ``volume_type`` and ``encrypted``.
        associate_public_ip: Whether the host gets a public address.
        security_group: ``description``, ``ingress``, ``egress`` and ``tags``
            of the host security group.
        tags: Tags of the instance.
    """

    def __init__(
        self,
        vpc_id: pulumi.Input[str],
        subnet_id: pulumi.Input[str],
        instance_profile_name: pulumi.Input[str],
        instance_type: str = "t3.micro",
        ami_id: str | None = None,
        user_data: str = blueprint.DEFAULT_USER_DATA,
        root_volume: dict[str, Any] | None = None,
        associate_public_ip: bool = False,
        security_group: dict[str, Any] | None = None,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.vpc_id: pulumi.Input[str] = vpc_id
        self.subnet_id: pulumi.Input[str] = subnet_id
        self.instance_profile_name: pulumi.Input[str] = instance_profile_name
        self.instance_type: str = instance_type
        self.ami_id: str | None = ami_id or None
        self.user_data: str = user_data
        self.root_volume: dict[str, Any] = root_volume or {
            "volume_size": 20,
            "volume_type": "gp3",
            "encrypted": True,
        }
        self.associate_public_ip: bool = associate_public_ip
        self.security_group: dict[str, Any] = {
            "description": "SSM managed host",
            "ingress": [],
            "egress": [],
            "tags": {},
            **(security_group or {}),
        }
        self.tags: dict[str, str] = tags or {}

    @classmethod
    def from_blueprint(
        cls,
        graph: ResourceGraph,
        known: Mapping[Ref, pulumi.Input[str]],
    ) -> AwsComputeArgs:
        """Combine blueprint literals with upstream component outputs.

        Args:
            graph: Validated blueprint.
            known: Provisioned values for the refs the host points at outside
                this component (its VPC, subnet and instance profile).
        """
        host = graph[blueprint.INSTANCE_ID].attributes
        security_group = graph[blueprint.INSTANCE_SG_ID].attributes
        return cls(
            vpc_id=resolve_refs(security_group["vpc_id"], known),
            subnet_id=resolve_refs(host["subnet_id"], known),
            instance_profile_name=resolve_refs(host["iam_instance_profile"], known),
            instance_type=host["instance_type"],
            ami_id=host["ami"],
            user_data=host["user_data"],
            root_volume=dict(host["root_block_device"]),
            associate_public_ip=host["associate_public_ip_address"],
            security_group={
                "description": security_group["description"],
                "ingress": resolve_refs(security_group.get("ingress", []), known),
                "egress": resolve_refs(security_group.get("egress", []), known),
                "tags": dict(security_group.get("tags", {})),
            },
            tags=dict(host.get("tags", {})),
        )


class AwsCompute(pulumi.ComponentResource):
    """Single EC2 host managed through Systems Manager.

    With the default blueprint the host security group admits no inbound
    traffic; operators reach the host with Session Manager. IMDSv2 is
    required.
    """

    def __init__(
        self,
        name: str,
        args: AwsComputeArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("ssmhost:aws:Compute", name, {}, opts)

        logger.debug(
            "provisioning_aws_compute",
            extra={"component": name, "instance_type": args.instance_type},
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

        if args.ami_id:
            ami: pulumi.Input[str] = args.ami_id
        else:
            ami = aws.ec2.get_ami_output(
                most_recent=True,
                owners=["amazon"],
                filters=[aws.ec2.GetAmiFilterArgs(name="name", values=[_AMI_NAME_PATTERN])],
            ).apply(lambda result: result.id)

        instance = aws.ec2.Instance(
            f"{name}-host",
            aws.ec2.InstanceArgs(
                ami=ami,
                instance_type=args.instance_type,
                subnet_id=args.subnet_id,
                vpc_security_group_ids=[security_group.id],
                iam_instance_profile=args.instance_profile_name,
                associate_public_ip_address=args.associate_public_ip,
                user_data=args.user_data,
                metadata_options=aws.ec2.InstanceMetadataOptionsArgs(
                    http_endpoint="enabled",
                    http_tokens="required",
                ),
                root_block_device=aws.ec2.InstanceRootBlockDeviceArgs(
                    volume_size=args.root_volume["volume_size"],
                    volume_type=args.root_volume["volume_type"],
                    encrypted=args.root_volume["encrypted"],
                ),
                tags=args.tags,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self._outputs: ComputeOutputs = ComputeOutputs(
            instance_id=instance.id,
            private_ip=instance.private_ip,
            security_group_id=security_group.id,
            public_ip=instance.public_ip if args.associate_public_ip else None,
        )

        self.register_outputs(
            {
                "instance_id": self._outputs.instance_id,
                "private_ip": self._outputs.private_ip,
            }
        )

    @property
    def outputs(self) -> ComputeOutputs:
        """Return the resolved compute outputs."""
        return self._outputs
