"""Typed configuration loaded from environment variables at startup."""

from __future__ import annotations

import logging
from ipaddress import ip_network
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger: logging.Logger = logging.getLogger(__name__)


class StackConfig(BaseSettings):
    """Fully validated infrastructure stack configuration.

    All values are sourced from ``SSMHOST_``-prefixed environment variables
    (or a ``.env`` file) at startup. Raises ``ValidationError`` on invalid
    values.
    """

    model_config = SettingsConfigDict(
        env_prefix="SSMHOST_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    project_name: str = "ssmhost"
    environment: Literal["prod", "staging", "dev"] = "dev"
    region: str = "us-west-2"
    availability_zone: str = "us-west-2a"
    vpc_cidr: str = "10.0.0.0/16"
    public_subnet_cidr: str = "10.0.1.0/24"
    private_subnet_cidr: str = "10.0.2.0/24"
    instance_type: str = "t3.micro"
    ami_id: str = ""
    root_volume_size: int = 20
    public_instance: bool = False
    enable_ssm_endpoints: bool = True
    user_data: str = ""

    @field_validator("vpc_cidr", "public_subnet_cidr", "private_subnet_cidr")
    @classmethod
    def _check_cidr(cls, value: str) -> str:
        if "/" not in value:
            raise ValueError(f"'{value}' is missing a prefix length")
        ip_network(value, strict=True)
        return value

    @field_validator("root_volume_size")
    @classmethod
    def _check_volume_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("root_volume_size must be positive")
        return value

    @classmethod
    def load(cls) -> StackConfig:
        """Load and validate configuration from the environment.

        Logs each resolved setting at DEBUG level.
        Raises ``pydantic.ValidationError`` on invalid values.
        """
        config = cls()
        logger.debug(
            "stack_config_loaded",
            extra={
                "project_name": config.project_name,
                "environment": config.environment,
                "region": config.region,
                "vpc_cidr": config.vpc_cidr,
                "enable_ssm_endpoints": config.enable_ssm_endpoints,
            },
        )
        return config
