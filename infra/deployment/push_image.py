"""CodeBuild project that builds, pushes and describes the service image.

The project produces the two artifacts the CodeDeploy ECS action consumes:

* ``ImageArtifact`` with ``imageDetail.json`` pointing at the pushed image.
* ``ManifestArtifact`` with ``taskdef.json`` and ``appspec.yaml``.

The task definition template is derived from the placeholder task definition,
with the container image swapped for the ``<IMAGE1_NAME>`` placeholder that
CodePipeline fills in from ``imageDetail.json``.
"""

import json
from typing import Any

from aws_cdk import aws_codebuild as codebuild
from aws_cdk import aws_iam as iam
from constructs import Construct

from deployment.image_repository import ImageRepository
from deployment.task_definition import DummyTaskDefinition

IMAGE_ARTIFACT_NAME = "ImageArtifact"
MANIFEST_ARTIFACT_NAME = "ManifestArtifact"
IMAGE_PLACEHOLDER = "IMAGE1_NAME"

# Fields returned by DescribeTaskDefinition that RegisterTaskDefinition rejects
_READ_ONLY_TASK_FIELDS = (
    "taskDefinitionArn",
    "revision",
    "status",
    "requiresAttributes",
    "compatibilities",
    "registeredAt",
    "registeredBy",
)


def render_app_spec(container_name: str, container_port: int) -> str:
    """Render the ECS AppSpec document.

    JSON is a subset of YAML, so the result is written as ``appspec.yaml``.
    CodeDeploy substitutes ``<TASK_DEFINITION>`` with the revision it
    registers from ``taskdef.json``.
    """
    app_spec: dict[str, Any] = {
        "version": 0.0,
        "Resources": [
            {
                "TargetService": {
                    "Type": "AWS::ECS::Service",
                    "Properties": {
                        "TaskDefinition": "<TASK_DEFINITION>",
                        "LoadBalancerInfo": {
                            "ContainerName": container_name,
                            "ContainerPort": container_port,
                        },
                    },
                }
            }
        ],
    }
    return json.dumps(app_spec)


def task_definition_filter() -> str:
    """jq filter turning DescribeTaskDefinition output into taskdef.json.

    Expects the container name in $name. The image becomes the pipeline
    placeholder and fields rejected by RegisterTaskDefinition are dropped.
    """
    strip_fields = ", ".join(f".{field}" for field in _READ_ONLY_TASK_FIELDS)
    return (
        "(.containerDefinitions[] | select(.name == $name) | .image) = "
        f'"<{IMAGE_PLACEHOLDER}>" | del({strip_fields})'
    )


def _build_spec() -> codebuild.BuildSpec:
    return codebuild.BuildSpec.from_object(
        {
            "version": "0.2",
            "phases": {
                "pre_build": {
                    "commands": [
                        "echo Logging in to Amazon ECR...",
                        "aws ecr get-login-password --region $AWS_DEFAULT_REGION"
                        " | docker login --username AWS --password-stdin ${REPOSITORY_URI%%/*}",
                        "IMAGE_TAG=$(echo ${CODEBUILD_RESOLVED_SOURCE_VERSION:-latest} | cut -c 1-7)",
                        "echo Using image tag $IMAGE_TAG",
                    ]
                },
                "build": {
                    "commands": [
                        "echo Build started on `date`",
                        "docker build -t $REPOSITORY_URI:latest .",
                        "docker tag $REPOSITORY_URI:latest $REPOSITORY_URI:$IMAGE_TAG",
                    ]
                },
                "post_build": {
                    "commands": [
                        "echo Build completed on `date`",
                        "docker push $REPOSITORY_URI:latest",
                        "docker push $REPOSITORY_URI:$IMAGE_TAG",
                        "printf '{\"ImageURI\":\"%s\"}' $REPOSITORY_URI:$IMAGE_TAG > imageDetail.json",
                        "aws ecs describe-task-definition --task-definition $TASK_DEFINITION_ARN"
                        " --query taskDefinition --output json > base-taskdef.json",
                        f"jq --arg name \"$CONTAINER_NAME\" '{task_definition_filter()}'"
                        " base-taskdef.json > taskdef.json",
                        'echo "$APP_SPEC" > appspec.yaml',
                    ]
                },
            },
            "artifacts": {
                "secondary-artifacts": {
                    IMAGE_ARTIFACT_NAME: {"files": ["imageDetail.json"]},
                    MANIFEST_ARTIFACT_NAME: {"files": ["taskdef.json", "appspec.yaml"]},
                }
            },
        }
    )


class PushImageProject(Construct):
    """Pipeline project that pushes the image and writes the deploy manifests."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        image_repository: ImageRepository,
        task_definition: DummyTaskDefinition,
        compute_type: codebuild.ComputeType = codebuild.ComputeType.SMALL,
    ) -> None:
        super().__init__(scope, construct_id)

        self.project = codebuild.PipelineProject(
            self,
            "Project",
            build_spec=_build_spec(),
            environment=codebuild.BuildEnvironment(
                build_image=codebuild.LinuxBuildImage.STANDARD_7_0,
                compute_type=compute_type,
                privileged=True,  # docker build
            ),
            environment_variables={
                "REPOSITORY_URI": codebuild.BuildEnvironmentVariable(
                    value=image_repository.repository_uri
                ),
                "TASK_DEFINITION_ARN": codebuild.BuildEnvironmentVariable(
                    value=task_definition.task_definition_arn
                ),
                "CONTAINER_NAME": codebuild.BuildEnvironmentVariable(
                    value=task_definition.container_name
                ),
                "APP_SPEC": codebuild.BuildEnvironmentVariable(
                    value=render_app_spec(
                        task_definition.container_name,
                        task_definition.container_port,
                    )
                ),
            },
        )

        image_repository.grant_pull_push(self.project)
        self.project.add_to_role_policy(
            iam.PolicyStatement(
                actions=["ecs:DescribeTaskDefinition"],
                resources=["*"],
            )
        )
