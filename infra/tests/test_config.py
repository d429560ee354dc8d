"""Tests for the StackConfig environment-driven settings class."""
from __future__ import annotations

import pydantic
import pytest

from ssmhost_infra.config import StackConfig


def test_stack_config_load_defaults() -> None:
    config = StackConfig.load()
    assert config.project_name == "ssmhost"
    assert config.environment == "dev"
    assert config.vpc_cidr == "10.0.0.0/16"
    assert config.public_subnet_cidr == "10.0.1.0/24"
    assert config.private_subnet_cidr == "10.0.2.0/24"
    assert config.instance_type == "t3.micro"
    assert config.ami_id == ""
    assert config.root_volume_size == 20
    assert config.public_instance is False
    assert config.enable_ssm_endpoints is True


def test_stack_config_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SSMHOST_ENVIRONMENT", "staging")
    monkeypatch.setenv("SSMHOST_REGION", "eu-central-1")
    monkeypatch.setenv("SSMHOST_INSTANCE_TYPE", "t3.small")
    monkeypatch.setenv("SSMHOST_ENABLE_SSM_ENDPOINTS", "false")
    monkeypatch.setenv("SSMHOST_ROOT_VOLUME_SIZE", "40")
    config = StackConfig.load()
    assert config.environment == "staging"
    assert config.region == "eu-central-1"
    assert config.instance_type == "t3.small"
    assert config.enable_ssm_endpoints is False
    assert config.root_volume_size == 40


def test_stack_config_rejects_unknown_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SSMHOST_ENVIRONMENT", "qa")
    with pytest.raises(pydantic.ValidationError):
        StackConfig.load()


@pytest.mark.parametrize("block", ["10.0.0.0", "10.0.0.1/16", "10.0.0.0/40"])
def test_stack_config_rejects_malformed_cidr(monkeypatch: pytest.MonkeyPatch, block: str) -> None:
    monkeypatch.setenv("SSMHOST_VPC_CIDR", block)
    with pytest.raises(pydantic.ValidationError):
        StackConfig.load()


def test_stack_config_rejects_non_positive_volume(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SSMHOST_ROOT_VOLUME_SIZE", "0")
    with pytest.raises(pydantic.ValidationError):
        StackConfig.load()
