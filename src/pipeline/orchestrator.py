"""
Placeholder Pipeline Orchestrator

fetch -> (raster variants, vector placeholder) -> VariationResult

The fetch is a hard prerequisite. The two producers share the source bytes
read-only and have no data dependency on each other; they run one after the
other unless the config asks for them to run concurrently. Admission is
bounded so CPU-heavy runs cannot pile up without limit.
"""

import time
import asyncio
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from src.core.config import PipelineConfig
from src.core.exceptions import InvalidImageError
from src.core.logging import get_logger
from src.core.metrics import (
    active_pipelines_gauge,
    record_artifact_sizes,
    record_pipeline_completion,
)
from src.engines.primitive import trace
from src.modules.imagery.models import PlaceholderArtifact, VariantBundle, VariationResult
from src.pipeline.fetcher import fetch_image
from src.pipeline.placeholder import Tracer, generate_placeholder
from src.pipeline.variants import produce_variants

logger = get_logger(__name__)

Fetcher = Callable[..., Awaitable[bytes]]


class PlaceholderPipeline:
    """Runs one fetch-transform cycle per call against a fixed configuration."""

    def __init__(
        self,
        config: PipelineConfig,
        fetcher: Fetcher = fetch_image,
        tracer: Tracer = trace,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config
        self._fetcher = fetcher
        self._tracer = tracer
        self._client = client
        self._admission = asyncio.Semaphore(config.max_concurrent_pipelines)

    async def generate_variations(self, image_url: Optional[str] = None) -> VariationResult:
        """
        Fetch the source and produce both the raster bundle and the placeholder.

        Args:
            image_url: Override for the configured source URL

        Raises:
            InvalidInputError: the source URL is empty
            InvalidImageError: the fetch yielded no bytes or the image has no dimensions
            UnsupportedOutputError: tracing produced several artifacts
        """
        url = self.config.source_url if image_url is None else image_url

        async with self._admission:
            active_pipelines_gauge.inc()
            start = time.perf_counter()
            stage = "fetch"
            try:
                source = await self._fetcher(
                    url,
                    client=self._client,
                    timeout=self.config.fetch_timeout_seconds
                )
                if not source:
                    raise InvalidImageError("Invalid image: fetch returned no bytes", stage="fetch")

                stage = "transform"
                variants, placeholder = await self._run_producers(source)
            except Exception as e:
                record_pipeline_completion(
                    "failed",
                    time.perf_counter() - start,
                    failure_stage=getattr(e, "stage", None) or stage
                )
                raise
            finally:
                active_pipelines_gauge.dec()

        file_sizes = {
            "source": len(source),
            **variants.byte_sizes(),
            "primitive": placeholder.size_bytes,
        }
        logger.info("variation_file_sizes", file_sizes=file_sizes)
        record_artifact_sizes(len(source), variants.byte_sizes(), placeholder.size_bytes)
        record_pipeline_completion("completed", time.perf_counter() - start)

        return VariationResult(variants=variants, placeholder=placeholder, source_size=len(source))

    async def _run_producers(self, source: bytes) -> Tuple[VariantBundle, PlaceholderArtifact]:
        if self.config.run_producers_concurrently:
            variants, placeholder = await asyncio.gather(
                produce_variants(source, self.config),
                generate_placeholder(source, self.config, tracer=self._tracer),
            )
            return variants, placeholder

        variants = await produce_variants(source, self.config)
        placeholder = await generate_placeholder(source, self.config, tracer=self._tracer)
        return variants, placeholder
