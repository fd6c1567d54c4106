"""
Responder

Every method on every path runs the pipeline against the configured source
and answers with the SVG placeholder. Nothing in the request is consulted.
"""

from fastapi import APIRouter, Depends, Response

from src.api.dependencies import get_pipeline
from src.core.logging import get_logger
from src.pipeline.orchestrator import PlaceholderPipeline

logger = get_logger(__name__)
router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def serve_placeholder(pipeline: PlaceholderPipeline = Depends(get_pipeline)) -> Response:
    result = await pipeline.generate_variations()

    logger.info(
        "placeholder_served",
        size_bytes=result.placeholder.size_bytes,
        variants=result.variants.dimensions()
    )

    return Response(content=result.placeholder.content, media_type=SVG_MEDIA_TYPE)
