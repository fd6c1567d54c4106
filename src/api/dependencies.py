"""
FastAPI Dependencies

The pipeline is built once per process in the application lifespan and
shared by every request through app state.
"""

from fastapi import Request

from src.core.config import PipelineConfig, settings
from src.pipeline.orchestrator import PlaceholderPipeline


def get_pipeline_config() -> PipelineConfig:
    """Pipeline parameters derived from environment settings."""
    return PipelineConfig.from_settings(settings)


def get_pipeline(request: Request) -> PlaceholderPipeline:
    """Returns the process-wide pipeline from app state."""
    return request.app.state.pipeline
