"""
Fetcher - retrieve the source image bytes

Network failures and non-success statuses surface as httpx exceptions,
unwrapped.
"""

import time
from typing import Optional

import httpx

from src.core.exceptions import InvalidInputError
from src.core.logging import get_logger
from src.core.metrics import track_stage_latency

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


async def fetch_image(
    url: Optional[str],
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS
) -> bytes:
    """
    Download url and return the response body.

    Args:
        url: Source URL; empty or None is rejected before any I/O
        client: Optional shared client, a short-lived one is created otherwise
        timeout: Request timeout in seconds when no client is given

    Returns:
        Raw response body
    """
    if not url:
        raise InvalidInputError()

    logger.info("fetch_started", url=url)
    start = time.perf_counter()

    with track_stage_latency("fetch"):
        if client is not None:
            response = await client.get(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
                response = await owned.get(url)
        response.raise_for_status()

    body = response.content
    logger.info(
        "fetch_completed",
        url=url,
        status_code=response.status_code,
        size_bytes=len(body),
        duration_ms=int((time.perf_counter() - start) * 1000)
    )
    return body
