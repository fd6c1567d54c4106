"""
Application Configuration

Centralized settings management using Pydantic Settings.
Supports environment variables and .env files.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings
from typing import Optional


DEFAULT_SOURCE_IMAGE_URL = (
    "https://unsplash.com/photos/yvR9V-RAz7E/download"
    "?ixid=M3wxMjA3fDB8MXxhbGx8MzR8fHx8fHx8fDE3MzQzOTQwNzd8&force=true&w=2400"
)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==========================================================================
    # App Settings
    # ==========================================================================
    APP_NAME: str = "Primitive Placeholder Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, PROD
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # ==========================================================================
    # Source
    # ==========================================================================
    SOURCE_IMAGE_URL: str = DEFAULT_SOURCE_IMAGE_URL
    FETCH_TIMEOUT_SECONDS: float = 30.0

    # ==========================================================================
    # Raster Variants
    # ==========================================================================
    MICRO_WIDTH: int = 200
    SMALL_FRACTION: float = 0.4
    MEDIUM_FRACTION: float = 0.6
    LARGE_FRACTION: float = 0.8

    MICRO_QUALITY: int = 50
    DISPLAY_QUALITY: int = 100
    DISPLAY_CHROMA_SUBSAMPLING: str = "4:4:4"

    # ==========================================================================
    # Primitive Placeholder
    # ==========================================================================
    PRIMITIVE_COUNT: int = 50
    PRIMITIVE_MODE: int = 1  # triangles
    PRIMITIVE_ALPHA: int = 128
    PRIMITIVE_INPUT_SIZE: int = 256
    PRIMITIVE_CANDIDATES: int = 100
    PRIMITIVE_MAX_AGE: int = 100
    PRIMITIVE_SEED: Optional[int] = None
    SVG_PRECISION: int = 1

    # ==========================================================================
    # Concurrency
    # ==========================================================================
    MAX_CONCURRENT_PIPELINES: int = 2
    RUN_PRODUCERS_CONCURRENTLY: bool = False

    # ==========================================================================
    # Logging & Metrics
    # ==========================================================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT_JSON: bool = True  # JSON for production, console for development
    METRICS_PORT: Optional[int] = None  # Separate Prometheus port, disabled when unset

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


class PipelineConfig(BaseModel):
    """Immutable pipeline parameters handed to the orchestrator at construction."""
    model_config = ConfigDict(frozen=True)

    source_url: str = DEFAULT_SOURCE_IMAGE_URL
    fetch_timeout_seconds: float = 30.0

    micro_width: int = 200
    small_fraction: float = 0.4
    medium_fraction: float = 0.6
    large_fraction: float = 0.8

    micro_quality: int = 50
    display_quality: int = 100
    display_chroma_subsampling: str = "4:4:4"

    primitive_count: int = 50
    primitive_mode: int = 1
    primitive_alpha: int = 128
    primitive_input_size: int = 256
    primitive_candidates: int = 100
    primitive_max_age: int = 100
    primitive_seed: Optional[int] = None
    svg_precision: int = 1

    max_concurrent_pipelines: int = 2
    run_producers_concurrently: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            source_url=settings.SOURCE_IMAGE_URL,
            fetch_timeout_seconds=settings.FETCH_TIMEOUT_SECONDS,
            micro_width=settings.MICRO_WIDTH,
            small_fraction=settings.SMALL_FRACTION,
            medium_fraction=settings.MEDIUM_FRACTION,
            large_fraction=settings.LARGE_FRACTION,
            micro_quality=settings.MICRO_QUALITY,
            display_quality=settings.DISPLAY_QUALITY,
            display_chroma_subsampling=settings.DISPLAY_CHROMA_SUBSAMPLING,
            primitive_count=settings.PRIMITIVE_COUNT,
            primitive_mode=settings.PRIMITIVE_MODE,
            primitive_alpha=settings.PRIMITIVE_ALPHA,
            primitive_input_size=settings.PRIMITIVE_INPUT_SIZE,
            primitive_candidates=settings.PRIMITIVE_CANDIDATES,
            primitive_max_age=settings.PRIMITIVE_MAX_AGE,
            primitive_seed=settings.PRIMITIVE_SEED,
            svg_precision=settings.SVG_PRECISION,
            max_concurrent_pipelines=settings.MAX_CONCURRENT_PIPELINES,
            run_producers_concurrently=settings.RUN_PRODUCERS_CONCURRENTLY,
        )


# Global settings instance
settings = Settings()
