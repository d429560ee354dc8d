"""Provider-agnostic instance identity component interface."""

from __future__ import annotations

import logging
from typing import Protocol

import pulumi

logger: logging.Logger = logging.getLogger(__name__)


class IdentityOutputs:
    """Resolved outputs from a provisioned instance identity."""

    def __init__(
        self,
        role_arn: pulumi.Output[str],
        role_name: pulumi.Output[str],
        instance_profile_name: pulumi.Output[str],
    ) -> None:
        self.role_arn: pulumi.Output[str] = role_arn
        self.role_name: pulumi.Output[str] = role_name
        self.instance_profile_name: pulumi.Output[str] = instance_profile_name


class SsmHostIdentity(Protocol):
    """Provider-agnostic interface for the role the host runs as."""

    @property
    def outputs(self) -> IdentityOutputs:
        """Return the resolved identity outputs."""
        ...
