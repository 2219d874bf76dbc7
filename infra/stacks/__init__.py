"""CDK Stacks package."""

from stacks.blue_green_stack import BlueGreenContainerDeploymentStack

__all__ = ["BlueGreenContainerDeploymentStack"]
