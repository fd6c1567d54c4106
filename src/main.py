"""
Primitive Placeholder Service - Main Application

FastAPI application with:
- One catch-all responder serving the SVG placeholder
- Structured logging with structlog
- Prometheus metrics on a dedicated port
- Global exception handling
"""

import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from src.core.config import settings
from src.core.logging import setup_logging, get_logger, LogContext
from src.core.exceptions import register_exception_handlers, handle_unhandled_exception
from src.core.metrics import (
    set_app_info,
    start_metrics_server,
    http_requests_total,
    http_request_duration_seconds,
)
from src.api.dependencies import get_pipeline_config
from src.api.responder import router as responder_router
from src.pipeline.orchestrator import PlaceholderPipeline


# =============================================================================
# Initialize Logging
# =============================================================================
setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=settings.LOG_FORMAT_JSON
)
logger = get_logger(__name__)


# =============================================================================
# Lifespan Handler
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - startup and shutdown."""
    logger.info(
        "application_starting",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT
    )

    config = get_pipeline_config()

    app.state.http_client = httpx.AsyncClient(
        timeout=config.fetch_timeout_seconds,
        follow_redirects=True
    )
    app.state.pipeline = PlaceholderPipeline(config, client=app.state.http_client)
    logger.info(
        "pipeline_ready",
        source_url=config.source_url,
        primitive_count=config.primitive_count,
        primitive_mode=config.primitive_mode,
        max_concurrent_pipelines=config.max_concurrent_pipelines
    )

    set_app_info(
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT
    )
    metrics_server = start_metrics_server(settings.METRICS_PORT)
    if metrics_server is not None:
        logger.info("metrics_server_started", port=settings.METRICS_PORT)

    yield

    logger.info("application_shutting_down")
    if metrics_server is not None:
        metrics_server.shutdown()
    await app.state.http_client.aclose()
    logger.info("application_shutdown_complete")


# =============================================================================
# Create FastAPI Application
# =============================================================================
# Docs routes are disabled: every path belongs to the responder.
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None
)


# =============================================================================
# Middleware
# =============================================================================

@app.middleware("http")
async def add_request_context(request: Request, call_next):
    """Tag the request for logging and track timing for metrics."""
    request_id = str(uuid.uuid4())
    start_time = time.time()

    with LogContext(request_id=request_id):
        try:
            response = await call_next(request)
        except Exception as e:
            response = handle_unhandled_exception(request, e)

        duration = time.time() - start_time
        http_request_duration_seconds.labels(method=request.method).observe(duration)
        http_requests_total.labels(method=request.method, status=response.status_code).inc()

    response.headers["X-Process-Time"] = str(duration)
    response.headers["X-Request-ID"] = request_id
    return response


# =============================================================================
# Register Exception Handlers
# =============================================================================
register_exception_handlers(app)


# =============================================================================
# Routes
# =============================================================================
app.include_router(responder_router)


# =============================================================================
# Development Server
# =============================================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
