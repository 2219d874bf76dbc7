"""Blue/green container deployment stack - ECS, CodeDeploy and CodePipeline."""

from constructs import Construct
import aws_cdk as cdk
from aws_cdk import (
    Stack,
    aws_codecommit as codecommit,
    aws_codedeploy as codedeploy,
    aws_codepipeline as codepipeline,
    aws_codepipeline_actions as codepipeline_actions,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    Duration,
)

from deployment.config import DeploymentSettings, get_settings
from deployment.image_repository import ImageRepository
from deployment.push_image import (
    IMAGE_ARTIFACT_NAME,
    IMAGE_PLACEHOLDER,
    MANIFEST_ARTIFACT_NAME,
    PushImageProject,
)
from deployment.task_definition import DummyTaskDefinition


class BlueGreenContainerDeploymentStack(Stack):
    """Stack for an ECS service released blue/green through CodePipeline."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: DeploymentSettings | None = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.settings = settings or get_settings()
        s = self.settings

        # VPC
        self.vpc = ec2.Vpc(
            self,
            "Vpc",
            max_azs=s.max_azs,
        )

        # ECS Cluster
        self.cluster = ecs.Cluster(
            self,
            "Cluster",
            vpc=self.vpc,
            cluster_name=s.cluster_name,
        )

        # Load balancer with production and test listeners
        self.load_balancer = elbv2.ApplicationLoadBalancer(
            self,
            "LoadBalancer",
            vpc=self.vpc,
            internet_facing=True,
        )

        self.prod_listener = self.load_balancer.add_listener(
            "ProdListener",
            port=s.prod_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
        )

        self.test_listener = self.load_balancer.add_listener(
            "TestListener",
            port=s.test_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
        )

        # Blue (production) and green (test) target groups
        self.prod_target_group = elbv2.ApplicationTargetGroup(
            self,
            "ProdTargetGroup",
            port=s.prod_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.IP,
            vpc=self.vpc,
        )

        self.prod_listener.add_target_groups(
            "AddProdTg",
            target_groups=[self.prod_target_group],
        )

        self.test_target_group = elbv2.ApplicationTargetGroup(
            self,
            "TestTargetGroup",
            port=s.test_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.IP,
            vpc=self.vpc,
        )

        self.test_listener.add_target_groups(
            "AddTestTg",
            target_groups=[self.test_target_group],
        )

        # Will be replaced by CodeDeploy in CodePipeline
        self.task_definition = DummyTaskDefinition(
            self,
            "DummyTaskDefinition",
            image=s.image,
            family=s.family,
            container_name=s.container_name,
            container_port=s.container_port,
        )

        # Fargate service controlled by CodeDeploy
        self.service = ecs.FargateService(
            self,
            "Service",
            cluster=self.cluster,
            service_name=s.service_name,
            desired_count=s.desired_count,
            task_definition=self.task_definition.task_definition,
            deployment_controller=ecs.DeploymentController(
                type=ecs.DeploymentControllerType.CODE_DEPLOY,
            ),
        )

        # Only the blue target group is registered on the service; CodeDeploy
        # moves tasks to the green one during a deployment.
        self.prod_target_group.add_target(
            self.service.load_balancer_target(
                container_name=self.task_definition.container_name,
                container_port=self.task_definition.container_port,
            )
        )
        self.service_target_groups = (self.prod_target_group, self.test_target_group)

        self.service.connections.allow_from(self.load_balancer, ec2.Port.tcp(s.prod_port))
        self.service.connections.allow_from(self.load_balancer, ec2.Port.tcp(s.test_port))

        # CodeDeploy application and blue/green deployment group
        application = codedeploy.EcsApplication(
            self,
            "Application",
            application_name=s.application_name,
        )

        self.deployment_group = codedeploy.EcsDeploymentGroup(
            self,
            "DeploymentGroup",
            application=application,
            deployment_group_name=s.deployment_group_name,
            service=self.service,
            deployment_config=codedeploy.EcsDeploymentConfig.ALL_AT_ONCE,
            blue_green_deployment_config=codedeploy.EcsBlueGreenDeploymentConfig(
                blue_target_group=self.prod_target_group,
                green_target_group=self.test_target_group,
                listener=self.prod_listener,
                test_listener=self.test_listener,
                termination_wait_time=Duration.minutes(s.termination_wait_minutes),
            ),
            auto_rollback=codedeploy.AutoRollbackConfig(
                failed_deployment=True,
                stopped_deployment=True,
            ),
        )

        # Source repository (must already exist)
        repository = codecommit.Repository.from_repository_name(
            self,
            "CodeRepository",
            s.source_repository_name,
        )

        self.image_repository = ImageRepository(
            self,
            "ImageRepository",
            force_delete=s.force_delete_images,
            image_scan_on_push=s.image_scan_on_push,
        )

        self.push_image_project = PushImageProject(
            self,
            "PushImageProject",
            image_repository=self.image_repository,
            task_definition=self.task_definition,
        )

        # Pipeline: Source -> Build -> Deploy
        source_artifact = codepipeline.Artifact()
        image_artifact = codepipeline.Artifact(IMAGE_ARTIFACT_NAME)
        manifest_artifact = codepipeline.Artifact(MANIFEST_ARTIFACT_NAME)

        source_action = codepipeline_actions.CodeCommitSourceAction(
            action_name="CodeCommit",
            repository=repository,
            branch=s.source_branch,
            output=source_artifact,
        )

        build_action = codepipeline_actions.CodeBuildAction(
            action_name="PushImage",
            project=self.push_image_project.project,
            input=source_artifact,
            outputs=[image_artifact, manifest_artifact],
        )

        deploy_action = codepipeline_actions.CodeDeployEcsDeployAction(
            action_name="CodeDeploy",
            task_definition_template_input=manifest_artifact,
            app_spec_template_input=manifest_artifact,
            container_image_inputs=[
                codepipeline_actions.CodeDeployEcsContainerImageInput(
                    input=image_artifact,
                    task_definition_placeholder=IMAGE_PLACEHOLDER,
                )
            ],
            deployment_group=self.deployment_group,
        )

        self.pipeline = codepipeline.Pipeline(
            self,
            "Pipeline",
            pipeline_name=s.pipeline_name,
            stages=[
                codepipeline.StageProps(stage_name="Source", actions=[source_action]),
                codepipeline.StageProps(stage_name="Build", actions=[build_action]),
                codepipeline.StageProps(stage_name="Deploy", actions=[deploy_action]),
            ],
        )

        # Outputs
        dns_name = self.load_balancer.load_balancer_dns_name

        cdk.CfnOutput(
            self,
            "LoadBalancerDns",
            value=dns_name,
            description="Application load balancer DNS name",
        )

        cdk.CfnOutput(
            self,
            "ProdUrl",
            value=f"http://{dns_name}:{s.prod_port}",
            description="Production traffic URL",
        )

        cdk.CfnOutput(
            self,
            "TestUrl",
            value=f"http://{dns_name}:{s.test_port}",
            description="Test traffic URL",
        )

        cdk.CfnOutput(
            self,
            "ImageRepositoryUri",
            value=self.image_repository.repository_uri,
            description="ECR repository the pipeline pushes to",
        )

        cdk.CfnOutput(
            self,
            "PipelineName",
            value=self.pipeline.pipeline_name,
            description="CodePipeline name",
        )

        cdk.CfnOutput(
            self,
            "DeploymentGroupName",
            value=self.deployment_group.deployment_group_name,
            description="CodeDeploy deployment group name",
        )
