"""AWS IAM role + instance profile implementation of SsmHostIdentity."""

from __future__ import annotations

import logging

import pulumi
import pulumi_aws as aws

from ssmhost_infra import blueprint
from ssmhost_infra.components.identity import IdentityOutputs
from ssmhost_infra.graph.models import ResourceGraph, ResourceType

logger: logging.Logger = logging.getLogger(__name__)


class AwsIdentityArgs:
    """Arguments for the AWS instance identity component."""

    def __init__(
        self,
        role_name: str,
        assume_role_policy: str,
        profile_name: str,
        policy_arns: list[str] | None = None,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.role_name: str = role_name
        self.assume_role_policy: str = assume_role_policy
        self.profile_name: str = profile_name
        self.policy_arns: list[str] = policy_arns or []
        self.tags: dict[str, str] = tags or {}

    @classmethod
    def from_blueprint(cls, graph: ResourceGraph) -> AwsIdentityArgs:
        """Read the role, its attachments and the profile from a blueprint."""
        role = graph[blueprint.ROLE_ID]
        attachments = [
            node.attributes["policy_arn"]
            for node in graph.of_type(ResourceType.IAM_ROLE_POLICY_ATTACHMENT)
            if node.target("role") == role.id
        ]
        return cls(
            role_name=role.attributes["name"],
            assume_role_policy=role.attributes["assume_role_policy"],
            profile_name=graph[blueprint.PROFILE_ID].attributes["name"],
            policy_arns=attachments,
            tags=dict(role.attributes.get("tags", {})),
        )


class AwsIdentity(pulumi.ComponentResource):
    """IAM role trusted by EC2, its managed policies and an instance profile."""

    def __init__(
        self,
        name: str,
        args: AwsIdentityArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("ssmhost:aws:Identity", name, {}, opts)

        logger.debug(
            "provisioning_aws_identity",
            extra={"component": name, "policies": len(args.policy_arns)},
        )

        role = aws.iam.Role(
            f"{name}-role",
            aws.iam.RoleArgs(
                name=args.role_name,
                assume_role_policy=args.assume_role_policy,
                tags=args.tags,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        for index, policy_arn in enumerate(args.policy_arns):
            aws.iam.RolePolicyAttachment(
                f"{name}-policy-{index}",
                aws.iam.RolePolicyAttachmentArgs(role=role.name, policy_arn=policy_arn),
                opts=pulumi.ResourceOptions(parent=self),
            )

        profile = aws.iam.InstanceProfile(
            f"{name}-profile",
            aws.iam.InstanceProfileArgs(name=args.profile_name, role=role.name),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self._outputs: IdentityOutputs = IdentityOutputs(
            role_arn=role.arn,
            role_name=role.name,
            instance_profile_name=profile.name,
        )
        self.register_outputs(
            {
                "role_arn": self._outputs.role_arn,
                "instance_profile_name": self._outputs.instance_profile_name,
            }
        )

    @property
    def outputs(self) -> IdentityOutputs:
        """Return the resolved identity outputs."""
        return self._outputs
