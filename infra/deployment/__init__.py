"""Blue/green deployment constructs and settings."""

from deployment.config import DeploymentSettings, get_settings
from deployment.image_repository import ImageRepository
from deployment.push_image import (
    IMAGE_ARTIFACT_NAME,
    IMAGE_PLACEHOLDER,
    MANIFEST_ARTIFACT_NAME,
    PushImageProject,
    render_app_spec,
    task_definition_filter,
)
from deployment.task_definition import DummyTaskDefinition

__all__ = [
    "DeploymentSettings",
    "get_settings",
    "DummyTaskDefinition",
    "ImageRepository",
    "PushImageProject",
    "render_app_spec",
    "task_definition_filter",
    "IMAGE_ARTIFACT_NAME",
    "MANIFEST_ARTIFACT_NAME",
    "IMAGE_PLACEHOLDER",
]
