"""ECR repository for images pushed by the pipeline."""

from aws_cdk import Annotations, RemovalPolicy
from aws_cdk import aws_ecr as ecr
from aws_cdk import aws_iam as iam
from constructs import Construct


class ImageRepository(Construct):
    """ECR repository with optional forced deletion.

    ``force_delete`` empties the repository when the stack is destroyed. Use
    it for throwaway environments only.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        force_delete: bool = False,
        image_scan_on_push: bool = False,
    ) -> None:
        super().__init__(scope, construct_id)

        self.force_delete = force_delete

        self.repository = ecr.Repository(
            self,
            "Repository",
            image_scan_on_push=image_scan_on_push,
            empty_on_delete=force_delete,
            removal_policy=RemovalPolicy.DESTROY if force_delete else RemovalPolicy.RETAIN,
        )

        if force_delete:
            Annotations.of(self).add_warning_v2(
                "blue-green:imageRepositoryForceDelete",
                "ImageRepository has force_delete enabled: all images are "
                "removed with the stack. Only use this for test environments."
            )

    @property
    def repository_uri(self) -> str:
        """URI the build project tags and pushes images to."""
        return self.repository.repository_uri

    def grant_pull_push(self, grantee: iam.IGrantable) -> iam.Grant:
        """Grant pull and push access to the repository."""
        return self.repository.grant_pull_push(grantee)
