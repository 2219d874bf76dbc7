"""Placeholder Fargate task definition for CodeDeploy-managed services."""

from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_iam as iam
from constructs import Construct


class DummyTaskDefinition(Construct):
    """Single-container task definition that CodeDeploy replaces on deploy.

    The service needs a task definition to exist before the first pipeline
    run. Every deployment afterwards registers a new revision in the same
    family from the manifest written by the build project.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        image: str,
        family: str,
        container_name: str = "sample-website",
        container_port: int = 80,
        cpu: int = 256,
        memory_limit_mib: int = 512,
    ) -> None:
        super().__init__(scope, construct_id)

        if not 1 <= container_port <= 65535:
            raise ValueError(f"container_port out of range: {container_port}")

        self.family = family
        self.container_name = container_name
        self.container_port = container_port

        self.execution_role = iam.Role(
            self,
            "ExecutionRole",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AmazonECSTaskExecutionRolePolicy"
                )
            ],
        )

        # Revisions registered from taskdef.json keep this role, so deployed
        # tasks can pull from ECR and ship logs.
        self.task_definition = ecs.FargateTaskDefinition(
            self,
            "TaskDefinition",
            family=family,
            cpu=cpu,
            memory_limit_mib=memory_limit_mib,
            execution_role=self.execution_role,
        )

        container = self.task_definition.add_container(
            container_name,
            image=ecs.ContainerImage.from_registry(image),
            essential=True,
            logging=ecs.LogDrivers.aws_logs(stream_prefix=family),
        )
        container.add_port_mappings(
            ecs.PortMapping(container_port=container_port, protocol=ecs.Protocol.TCP)
        )

    @property
    def task_definition_arn(self) -> str:
        """ARN of the placeholder revision, described by the build project."""
        return self.task_definition.task_definition_arn
