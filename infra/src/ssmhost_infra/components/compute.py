"""Provider-agnostic host compute component interface."""

from __future__ import annotations

import logging
from typing import Protocol

import pulumi

logger: logging.Logger = logging.getLogger(__name__)


class ComputeOutputs:
    """Resolved outputs from a provisioned host."""

    def __init__(
        self,
        instance_id: pulumi.Output[str],
        private_ip: pulumi.Output[str],
        security_group_id: pulumi.Output[str],
        public_ip: pulumi.Output[str] | None = None,
    ) -> None:
        """Initialise compute outputs.

        Args:
            instance_id: Provider-specific identifier of the host.
            private_ip: Address of the host inside the network.
            security_group_id: Security group attached to the host.
            public_ip: Public address, only when the host is placed in the
                public subnet.
        """
        self.instance_id: pulumi.Output[str] = instance_id
        self.private_ip: pulumi.Output[str] = private_ip
        self.security_group_id: pulumi.Output[str] = security_group_id
        self.public_ip: pulumi.Output[str] | None = public_ip


class SsmHostCompute(Protocol):
    """Provider-agnostic interface for the managed host."""

    @property
    def outputs(self) -> ComputeOutputs:
        """Return the resolved compute outputs."""
        ...
