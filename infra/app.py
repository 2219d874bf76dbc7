#!/usr/bin/env python3
"""CDK App entry point for the blue/green container deployment."""

import os
import aws_cdk as cdk

from deployment.config import get_settings
from stacks.blue_green_stack import BlueGreenContainerDeploymentStack


app = cdk.App()
settings = get_settings()

env = cdk.Environment(
    account=os.environ.get("CDK_DEFAULT_ACCOUNT", settings.account),
    region=os.environ.get("CDK_DEFAULT_REGION", settings.region),
)

print(f"🚀 Synthesizing {settings.pipeline_name} for {env.region}")

# ECS service, blue/green deployment group and release pipeline
BlueGreenContainerDeploymentStack(
    app,
    "BlueGreenContainerDeploymentStack",
    settings=settings,
    env=env,
)

app.synth()
