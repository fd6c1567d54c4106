"""
Global Exception Handling

Domain exceptions for the placeholder pipeline and the handlers that turn
any failure into a generic server error response.
"""

import traceback
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.logging import get_logger, request_id_var

logger = get_logger(__name__)


# =============================================================================
# Custom Exceptions
# =============================================================================

class PlaceholderBaseException(Exception):
    """Base exception for the placeholder pipeline."""

    def __init__(
        self,
        message: str,
        code: int = 500,
        request_id: Optional[str] = None,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.request_id = request_id or request_id_var.get()
        self.stage = stage
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(PlaceholderBaseException):
    """Raised when the configured source URL is empty or absent."""

    def __init__(self, message: str = "Invalid input: source URL is empty", **kwargs):
        super().__init__(message, stage=kwargs.pop("stage", "fetch"), **kwargs)


class InvalidImageError(PlaceholderBaseException):
    """Raised when the source yields no bytes or no determinable dimensions."""

    def __init__(self, message: str = "Invalid image", **kwargs):
        super().__init__(message, **kwargs)


class UnsupportedOutputError(PlaceholderBaseException):
    """Raised when tracing reports more than one artifact."""

    def __init__(self, artifact_count: int, **kwargs):
        super().__init__(
            f"Unsupported output: tracing produced {artifact_count} artifacts, expected 1",
            stage=kwargs.pop("stage", "placeholder"),
            **kwargs
        )
        self.details["artifact_count"] = artifact_count


# =============================================================================
# Exception Handlers
# =============================================================================

def _error_body(code: int) -> Dict[str, Any]:
    return {
        "error": "Internal server error",
        "request_id": request_id_var.get(),
        "code": code,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    }


def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log an exception no domain handler caught and build the generic 500.

    Called from the request middleware while the request context is still
    bound, so both the log entry and the body carry the request_id.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        traceback="".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )

    return JSONResponse(status_code=500, content=_error_body(500))


def register_exception_handlers(app: FastAPI):
    """Register exception handlers with the FastAPI app.

    Diagnostics go to the process log only; the client sees a bare 500.
    """

    @app.exception_handler(PlaceholderBaseException)
    async def placeholder_exception_handler(request: Request, exc: PlaceholderBaseException):
        logger.error(
            "pipeline_exception",
            error=exc.message,
            error_type=type(exc).__name__,
            code=exc.code,
            stage=exc.stage,
            details=exc.details,
            path=str(request.url.path)
        )

        return JSONResponse(status_code=500, content=_error_body(500))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        return handle_unhandled_exception(request, exc)
