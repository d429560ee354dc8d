"""Declared resource graph for a Systems-Manager-managed EC2 host."""

from __future__ import annotations

import json
import logging

from ssmhost_infra.config import StackConfig
from ssmhost_infra.graph.models import Node, ResourceGraph, ResourceType

logger: logging.Logger = logging.getLogger(__name__)

SSM_CORE_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"
SSM_SERVICES: tuple[str, ...] = ("ssm", "ssmmessages", "ec2messages")
ANYWHERE = "0.0.0.0/0"

DEFAULT_USER_DATA = """#!/bin/bash
set -euo pipefail
systemctl enable amazon-ssm-agent
systemctl restart amazon-ssm-agent
"""

# Well-known node identifiers, used by the AWS components to read their args.
VPC_ID = f"{ResourceType.VPC}.main"
INTERNET_GATEWAY_ID = f"{ResourceType.INTERNET_GATEWAY}.main"
PUBLIC_SUBNET_ID = f"{ResourceType.SUBNET}.public"
PRIVATE_SUBNET_ID = f"{ResourceType.SUBNET}.private"
PUBLIC_ROUTE_TABLE_ID = f"{ResourceType.ROUTE_TABLE}.public"
PRIVATE_ROUTE_TABLE_ID = f"{ResourceType.ROUTE_TABLE}.private"
INSTANCE_SG_ID = f"{ResourceType.SECURITY_GROUP}.instance"
ENDPOINT_SG_ID = f"{ResourceType.SECURITY_GROUP}.endpoints"
ROLE_ID = f"{ResourceType.IAM_ROLE}.instance"
PROFILE_ID = f"{ResourceType.IAM_INSTANCE_PROFILE}.instance"
INSTANCE_ID = f"{ResourceType.INSTANCE}.host"

_EC2_TRUST_POLICY: str = json.dumps(
    {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": "ec2.amazonaws.com"},
                "Action": "sts:AssumeRole",
            }
        ],
    }
)

_ALLOW_ALL_EGRESS: list[dict[str, object]] = [
    {"protocol": "-1", "from_port": 0, "to_port": 0, "cidr_blocks": [ANYWHERE]}
]


def build_blueprint(config: StackConfig) -> ResourceGraph:
    """Declare every resource of the stack and the references between them."""
    graph = ResourceGraph()

    def tags(suffix: str) -> dict[str, str]:
        return {
            "Name": f"{config.project_name}-{suffix}",
            "Project": config.project_name,
            "Environment": config.environment,
        }

    vpc = graph.add(
        Node(
            ResourceType.VPC,
            "main",
            {
                "cidr_block": config.vpc_cidr,
                "enable_dns_support": True,
                "enable_dns_hostnames": True,
                "tags": tags("vpc"),
            },
        )
    )
    igw = graph.add(
        Node(ResourceType.INTERNET_GATEWAY, "main", {"vpc_id": vpc.ref(), "tags": tags("igw")})
    )

    public_subnet = graph.add(
        Node(
            ResourceType.SUBNET,
            "public",
            {
                "vpc_id": vpc.ref(),
                "cidr_block": config.public_subnet_cidr,
                "availability_zone": config.availability_zone,
                "map_public_ip_on_launch": True,
                "tags": tags("public"),
            },
        )
    )
    private_subnet = graph.add(
        Node(
            ResourceType.SUBNET,
            "private",
            {
                "vpc_id": vpc.ref(),
                "cidr_block": config.private_subnet_cidr,
                "availability_zone": config.availability_zone,
                "map_public_ip_on_launch": False,
                "tags": tags("private"),
            },
        )
    )

    public_rt = graph.add(
        Node(
            ResourceType.ROUTE_TABLE,
            "public",
            {
                "vpc_id": vpc.ref(),
                "routes": [{"cidr_block": ANYWHERE, "gateway_id": igw.ref()}],
                "tags": tags("public-rt"),
            },
        )
    )
    graph.add(
        Node(
            ResourceType.ROUTE_TABLE_ASSOCIATION,
            "public",
            {"subnet_id": public_subnet.ref(), "route_table_id": public_rt.ref()},
        )
    )
    private_rt = graph.add(
        Node(
            ResourceType.ROUTE_TABLE,
            "private",
            {"vpc_id": vpc.ref(), "routes": [], "tags": tags("private-rt")},
        )
    )
    graph.add(
        Node(
            ResourceType.ROUTE_TABLE_ASSOCIATION,
            "private",
            {"subnet_id": private_subnet.ref(), "route_table_id": private_rt.ref()},
        )
    )

    instance_sg = graph.add(
        Node(
            ResourceType.SECURITY_GROUP,
            "instance",
            {
                "vpc_id": vpc.ref(),
                "description": "SSM managed host; no inbound access",
                "ingress": [],
                "egress": _ALLOW_ALL_EGRESS,
                "tags": tags("instance-sg"),
            },
        )
    )

    role = graph.add(
        Node(
            ResourceType.IAM_ROLE,
            "instance",
            {
                "name": f"{config.project_name}-{config.environment}-instance-role",
                "assume_role_policy": _EC2_TRUST_POLICY,
                "tags": tags("instance-role"),
            },
        )
    )
    ssm_core = graph.add(
        Node(
            ResourceType.IAM_ROLE_POLICY_ATTACHMENT,
            "ssm_core",
            {"role": role.ref("name"), "policy_arn": SSM_CORE_POLICY_ARN},
        )
    )
    profile = graph.add(
        Node(
            ResourceType.IAM_INSTANCE_PROFILE,
            "instance",
            {
                "name": f"{config.project_name}-{config.environment}-instance-profile",
                "role": role.ref("name"),
            },
        )
    )

    endpoint_ids: list[str] = []
    if config.enable_ssm_endpoints:
        endpoint_sg = graph.add(
            Node(
                ResourceType.SECURITY_GROUP,
                "endpoints",
                {
                    "vpc_id": vpc.ref(),
                    "description": "HTTPS from the VPC to SSM interface endpoints",
                    "ingress": [
                        {
                            "protocol": "tcp",
                            "from_port": 443,
                            "to_port": 443,
                            "cidr_blocks": [config.vpc_cidr],
                        }
                    ],
                    "egress": _ALLOW_ALL_EGRESS,
                    "tags": tags("endpoints-sg"),
                },
            )
        )
        for service in SSM_SERVICES:
            endpoint = graph.add(
                Node(
                    ResourceType.VPC_ENDPOINT,
                    service,
                    {
                        "vpc_id": vpc.ref(),
                        "service_name": f"com.amazonaws.{config.region}.{service}",
                        "vpc_endpoint_type": "Interface",
                        "subnet_ids": [private_subnet.ref()],
                        "security_group_ids": [endpoint_sg.ref()],
                        "private_dns_enabled": True,
                        "tags": tags(f"{service}-endpoint"),
                    },
                )
            )
            endpoint_ids.append(endpoint.id)

    host_subnet = public_subnet if config.public_instance else private_subnet
    graph.add(
        Node(
            ResourceType.INSTANCE,
            "host",
            {
                "ami": config.ami_id or None,
                "instance_type": config.instance_type,
                "subnet_id": host_subnet.ref(),
                "vpc_security_group_ids": [instance_sg.ref()],
                "iam_instance_profile": profile.ref("name"),
                "associate_public_ip_address": config.public_instance,
                "user_data": config.user_data or DEFAULT_USER_DATA,
                "root_block_device": {
                    "volume_size": config.root_volume_size,
                    "volume_type": "gp3",
                    "encrypted": True,
                },
                "tags": tags("host"),
            },
            depends_on=(ssm_core.id, *endpoint_ids),
        )
    )

    logger.debug(
        "blueprint_built",
        extra={"nodes": len(graph), "endpoints": len(endpoint_ids)},
    )
    return graph
