"""Shared fixtures for synthesizing the blue/green stack."""

from collections.abc import Callable
from typing import Any

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from deployment.config import DeploymentSettings
from stacks.blue_green_stack import BlueGreenContainerDeploymentStack


def make_settings(**overrides: Any) -> DeploymentSettings:
    """Settings that ignore any local .env file."""
    return DeploymentSettings(_env_file=None, **overrides)


def synth_stack(**overrides: Any) -> BlueGreenContainerDeploymentStack:
    app = cdk.App()
    return BlueGreenContainerDeploymentStack(
        app,
        "TestStack",
        settings=make_settings(**overrides),
    )


def logical_id(template: Template, resource_type: str, prefix: str) -> str:
    """Return the single logical ID of ``resource_type`` starting with ``prefix``."""
    matches = [
        key for key in template.find_resources(resource_type) if key.startswith(prefix)
    ]
    assert len(matches) == 1, f"expected one {resource_type} named {prefix}*, got {matches}"
    return matches[0]


@pytest.fixture(scope="module")
def stack() -> BlueGreenContainerDeploymentStack:
    return synth_stack()


@pytest.fixture(scope="module")
def template(stack: BlueGreenContainerDeploymentStack) -> Template:
    return Template.from_stack(stack)


@pytest.fixture
def synth() -> Callable[..., BlueGreenContainerDeploymentStack]:
    return synth_stack
