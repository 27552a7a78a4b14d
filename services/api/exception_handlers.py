"""FastAPI exception handlers for custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import (
    AnalysisTimeoutError,
    ConfigurationError,
    InputError,
    ProcessingError,
    WallVizError,
)


def status_for(exc: WallVizError) -> int:
    """Map exception types to HTTP status codes."""
    if isinstance(exc, (InputError, ConfigurationError)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AnalysisTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, ProcessingError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def wallviz_exception_handler(request: Request, exc: WallVizError) -> JSONResponse:
    """Handle wall-visualizer exceptions."""
    status_code = status_for(exc)
    client_error = status_code < 500

    if client_error:
        logger.warning(
            "Rejected request to {path}: {type} - {message}",
            path=request.url.path,
            type=type(exc).__name__,
            message=exc.message,
        )
    else:
        logger.error(
            "Request to {path} failed: {type} - {message}",
            path=request.url.path,
            type=type(exc).__name__,
            message=exc.message,
            details=exc.details,
        )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            # server-side details stay in the log
            "details": exc.details if client_error else {},
        },
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 like other input errors."""
    fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
    logger.warning("Invalid request body for {path}: {fields}", path=request.url.path, fields=fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": InputError.__name__,
            "message": "Invalid request body",
            "details": {"fields": ", ".join(fields)},
        },
    )
