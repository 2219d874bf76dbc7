"""Deployment configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeploymentSettings(BaseSettings):
    """Blue/green deployment settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BLUE_GREEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    account: str | None = None
    region: str = "us-east-1"

    # Network
    max_azs: int = Field(default=2, ge=2)

    # ECS
    cluster_name: str = "blue-green-cluster"
    service_name: str = "blue-green-service"
    desired_count: int = Field(default=2, ge=1)

    # Load balancer
    prod_port: int = Field(default=80, ge=1, le=65535)
    test_port: int = Field(default=8080, ge=1, le=65535)

    # Placeholder task definition (replaced by CodeDeploy)
    image: str = "nginx"
    family: str = "blue-green"
    container_name: str = "sample-website"
    container_port: int = Field(default=80, ge=1, le=65535)

    # CodeDeploy
    application_name: str = "blue-green-application"
    deployment_group_name: str = "blue-green-deployment-group"
    termination_wait_minutes: int = Field(default=100, ge=0, le=2880)

    # Source, image and pipeline
    source_repository_name: str = "blue-green-repository"
    source_branch: str = "master"
    pipeline_name: str = "blue-green-pipeline"
    force_delete_images: bool = True  # Only for tests
    image_scan_on_push: bool = False

    @model_validator(mode="after")
    def check_listener_ports(self) -> "DeploymentSettings":
        """Production and test traffic need separate listeners."""
        if self.prod_port == self.test_port:
            raise ValueError(
                f"prod_port and test_port must differ (both are {self.prod_port})"
            )
        return self


@lru_cache
def get_settings() -> DeploymentSettings:
    """Get cached settings instance."""
    return DeploymentSettings()
