"""Tests for the image build project and AppSpec rendering."""

import json
import shutil
import subprocess
from typing import Any

import pytest
from aws_cdk.assertions import Template

from deployment.push_image import (
    IMAGE_ARTIFACT_NAME,
    IMAGE_PLACEHOLDER,
    MANIFEST_ARTIFACT_NAME,
    render_app_spec,
    task_definition_filter,
)


def _project(template: Template) -> dict[str, Any]:
    projects = template.find_resources("AWS::CodeBuild::Project")
    assert len(projects) == 1
    return next(iter(projects.values()))["Properties"]


def _env_vars(template: Template) -> dict[str, Any]:
    variables = _project(template)["Environment"]["EnvironmentVariables"]
    return {variable["Name"]: variable["Value"] for variable in variables}


class TestRenderAppSpec:
    """AppSpec document for the ECS blue/green deployment."""

    def test_target_service(self) -> None:
        app_spec = json.loads(render_app_spec("web", 8000))

        assert app_spec["version"] == 0.0
        (resource,) = app_spec["Resources"]
        target = resource["TargetService"]
        assert target["Type"] == "AWS::ECS::Service"
        assert target["Properties"]["TaskDefinition"] == "<TASK_DEFINITION>"
        assert target["Properties"]["LoadBalancerInfo"] == {
            "ContainerName": "web",
            "ContainerPort": 8000,
        }


class TestPushImageProject:
    """Build project wiring in the synthesized template."""

    def test_privileged_build_environment(self, template: Template) -> None:
        environment = _project(template)["Environment"]

        assert environment["PrivilegedMode"] is True
        assert environment["Type"] == "LINUX_CONTAINER"
        assert environment["ComputeType"] == "BUILD_GENERAL1_SMALL"

    def test_secondary_artifacts_match_pipeline_names(self, template: Template) -> None:
        build_spec = json.loads(_project(template)["Source"]["BuildSpec"])
        secondary = build_spec["artifacts"]["secondary-artifacts"]

        assert set(secondary) == {IMAGE_ARTIFACT_NAME, MANIFEST_ARTIFACT_NAME}
        assert secondary[IMAGE_ARTIFACT_NAME]["files"] == ["imageDetail.json"]
        assert sorted(secondary[MANIFEST_ARTIFACT_NAME]["files"]) == [
            "appspec.yaml",
            "taskdef.json",
        ]

    def test_task_definition_placeholder(self, template: Template) -> None:
        build_spec = json.loads(_project(template)["Source"]["BuildSpec"])
        commands = " ".join(build_spec["phases"]["post_build"]["commands"])

        assert f'"<{IMAGE_PLACEHOLDER}>"' in commands
        assert "describe-task-definition" in commands
        assert "del(.taskDefinitionArn" in commands

    def test_environment_variables(self, template: Template) -> None:
        variables = _env_vars(template)

        assert set(variables) == {
            "REPOSITORY_URI",
            "TASK_DEFINITION_ARN",
            "CONTAINER_NAME",
            "APP_SPEC",
        }
        assert variables["CONTAINER_NAME"] == "sample-website"
        assert json.loads(variables["APP_SPEC"]) == json.loads(
            render_app_spec("sample-website", 80)
        )

    def test_role_can_describe_task_definition(self, template: Template) -> None:
        policies = template.find_resources("AWS::IAM::Policy")
        actions: list[str] = []
        for policy in policies.values():
            for statement in policy["Properties"]["PolicyDocument"]["Statement"]:
                action = statement["Action"]
                actions.extend(action if isinstance(action, list) else [action])

        assert "ecs:DescribeTaskDefinition" in actions
        assert "ecr:PutImage" in actions


@pytest.mark.skipif(shutil.which("jq") is None, reason="jq is not installed")
class TestTaskDefinitionFilter:
    """The jq filter the build runs against DescribeTaskDefinition output."""

    DESCRIBED = {
        "taskDefinitionArn": "arn:aws:ecs:us-east-1:123456789012:task-definition/blue-green:3",
        "family": "blue-green",
        "revision": 3,
        "status": "ACTIVE",
        "requiresAttributes": [{"name": "com.amazonaws.ecs.capability.logging-driver.awslogs"}],
        "compatibilities": ["EC2", "FARGATE"],
        "registeredAt": "2026-01-01T00:00:00Z",
        "registeredBy": "arn:aws:iam::123456789012:root",
        "executionRoleArn": "arn:aws:iam::123456789012:role/execution",
        "containerDefinitions": [
            {"name": "sample-website", "image": "nginx", "essential": True},
            {"name": "sidecar", "image": "busybox", "essential": False},
        ],
    }

    def _run(self, container_name: str) -> dict[str, Any]:
        result = subprocess.run(
            ["jq", "--arg", "name", container_name, task_definition_filter()],
            input=json.dumps(self.DESCRIBED),
            capture_output=True,
            text=True,
            check=True,
        )
        return json.loads(result.stdout)

    def test_swaps_image_for_placeholder(self) -> None:
        task = self._run("sample-website")

        images = {c["name"]: c["image"] for c in task["containerDefinitions"]}
        assert images == {"sample-website": f"<{IMAGE_PLACEHOLDER}>", "sidecar": "busybox"}

    def test_strips_read_only_fields(self) -> None:
        task = self._run("sample-website")

        assert set(task) == {"family", "executionRoleArn", "containerDefinitions"}
        assert task["executionRoleArn"] == self.DESCRIBED["executionRoleArn"]
