"""
Structured Logging Configuration with structlog

Outputs JSON logs that are searchable in any log aggregator.
Every log includes: request_id, version, stage, timestamp, and other context.
"""

import sys
import asyncio
import logging
import structlog
from typing import Optional, Any, Dict
import time
from datetime import datetime, timezone
from contextvars import ContextVar
from functools import wraps

from src.core.config import settings

# Context variables for request-scoped logging
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
stage_var: ContextVar[Optional[str]] = ContextVar("stage", default=None)


def add_app_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add application context to every log entry."""
    event_dict["version"] = settings.APP_VERSION

    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    stage = stage_var.get()
    if stage and "stage" not in event_dict:
        event_dict["stage"] = stage

    return event_dict


def add_timestamp(
    logger: logging.Logger,
    method_name: str,
    event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Add ISO format timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = True
):
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON; if False, output colored console logs
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    # Silence noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_timestamp,
            add_app_context,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.UnicodeDecoder(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class LogContext:
    """
    Context manager for setting logging context.

    Usage:
        with LogContext(request_id="abc123", stage="fetch"):
            logger.info("fetch_started")
    """

    def __init__(self, request_id: Optional[str] = None, stage: Optional[str] = None):
        self.request_id = request_id
        self.stage = stage
        self._request_id_token = None
        self._stage_token = None

    def __enter__(self):
        if self.request_id:
            self._request_id_token = request_id_var.set(self.request_id)
        if self.stage:
            self._stage_token = stage_var.set(self.stage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._stage_token:
            stage_var.reset(self._stage_token)
        if self._request_id_token:
            request_id_var.reset(self._request_id_token)
        return False


def with_logging(stage: str):
    """
    Decorator to wrap a coroutine with stage logging.

    Usage:
        @with_logging("variants")
        async def produce_variants(image: bytes) -> VariantBundle:
            ...
    """
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            token = stage_var.set(stage)

            logger.info("stage_started", stage=stage)
            start = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
                duration_ms = int((time.perf_counter() - start) * 1000)
                logger.info(
                    "stage_completed",
                    stage=stage,
                    duration_ms=duration_ms
                )
                return result
            except Exception as e:
                duration_ms = int((time.perf_counter() - start) * 1000)
                logger.error(
                    "stage_failed",
                    stage=stage,
                    duration_ms=duration_ms,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise
            finally:
                stage_var.reset(token)

        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"with_logging expects a coroutine function, got {func!r}")
        return async_wrapper

    return decorator

