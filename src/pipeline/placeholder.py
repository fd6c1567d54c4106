"""
Vector Placeholder Producer

Runs the primitive tracer (one shape pass, then an optimize pass) and
accepts only single-artifact results.
"""

import asyncio
from typing import Any, Callable, Dict, List, Sequence

from src.core.config import PipelineConfig
from src.core.exceptions import UnsupportedOutputError
from src.core.logging import get_logger, with_logging
from src.core.metrics import track_stage_latency
from src.engines.primitive import (
    MultipleTraceResult,
    OptimizePlugin,
    PrimitivePlugin,
    TraceArtifact,
    TraceResult,
    trace,
)
from src.modules.imagery.models import PlaceholderArtifact

logger = get_logger(__name__)

OUTPUT_FILE_NAME = "image.svg"

Tracer = Callable[[bytes, str, Sequence[Any]], TraceResult]


def build_plugins(config: PipelineConfig) -> List[Any]:
    return [
        PrimitivePlugin(
            number_of_primitives=config.primitive_count,
            mode=config.primitive_mode,
            alpha=config.primitive_alpha,
            input_size=config.primitive_input_size,
            candidates=config.primitive_candidates,
            max_age=config.primitive_max_age,
            seed=config.primitive_seed,
        ),
        OptimizePlugin(precision=config.svg_precision),
    ]


def _describe_artifact(artifact: TraceArtifact) -> Dict[str, Any]:
    return {
        "name": artifact.name,
        "width": artifact.width,
        "height": artifact.height,
        "size_bytes": len(artifact.content),
        "shape_count": artifact.shape_count,
        "score": round(artifact.score, 5),
    }


def describe_result(result: TraceResult) -> Dict[str, Any]:
    """Loggable summary of a trace result (markup itself is omitted)."""
    if isinstance(result, MultipleTraceResult):
        artifacts = result.artifacts
    else:
        artifacts = [result.artifact]
    return {
        "kind": result.kind,
        "artifacts": [_describe_artifact(artifact) for artifact in artifacts],
    }


@with_logging("placeholder")
async def generate_placeholder(
    image_bytes: bytes,
    config: PipelineConfig,
    tracer: Tracer = trace
) -> PlaceholderArtifact:
    """
    Trace image_bytes into a single SVG placeholder.

    Raises:
        UnsupportedOutputError: the tracer reported more than one artifact
    """
    plugins = build_plugins(config)

    with track_stage_latency("placeholder"):
        result = await asyncio.to_thread(tracer, image_bytes, OUTPUT_FILE_NAME, plugins)

    logger.info("trace_result", **describe_result(result))

    if isinstance(result, MultipleTraceResult):
        raise UnsupportedOutputError(len(result.artifacts))

    artifact = result.artifact
    return PlaceholderArtifact(
        name=artifact.name,
        content=artifact.content,
        width=artifact.width,
        height=artifact.height
    )
