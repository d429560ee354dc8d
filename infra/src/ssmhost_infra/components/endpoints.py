"""Provider-agnostic private service endpoint component interface."""

from __future__ import annotations

import logging
from typing import Protocol

import pulumi

logger: logging.Logger = logging.getLogger(__name__)


class EndpointOutputs:
    """Resolved outputs from provisioned interface endpoints."""

    def __init__(
        self,
        endpoint_ids: dict[str, pulumi.Output[str]],
        security_group_id: pulumi.Output[str],
    ) -> None:
        self.endpoint_ids: dict[str, pulumi.Output[str]] = endpoint_ids
        self.security_group_id: pulumi.Output[str] = security_group_id


class SsmHostEndpoints(Protocol):
    @property
    def outputs(self) -> EndpointOutputs: ...
