from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import WallVizError
from core.logging_config import setup_logging_from_env
from core.settings import Settings, get_settings
from services.api.exception_handlers import (
    request_validation_exception_handler,
    wallviz_exception_handler,
)
from services.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from services.api.routes import router as v1_router


def _cors_origins(ui_origin: str) -> list[str]:
    origins = {
        ui_origin,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    }
    if "localhost" in ui_origin:
        origins.add(ui_origin.replace("localhost", "127.0.0.1"))
    elif "127.0.0.1" in ui_origin:
        origins.add(ui_origin.replace("127.0.0.1", "localhost"))
    return sorted(origins)


def create_app(settings: Settings | None = None, *, configure_logging: bool = True) -> FastAPI:
    if configure_logging:
        setup_logging_from_env()
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Wall Visualizer Analysis API",
        version="0.1.0",
        description="Wall segmentation, color palette extraction and depth estimation",
    )
    app.state.settings = settings

    if settings.api.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_minute=settings.api.requests_per_minute,
            requests_per_hour=settings.api.requests_per_hour,
        )

    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware - add LAST so it executes FIRST
    cors_origins = _cors_origins(settings.api.ui_origin)
    logger.info(f"CORS allowed origins: {cors_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def _log_settings() -> None:
        logger.info(
            "API initialised with edge_threshold={edge} confidence_threshold={conf} timeout={timeout}s",
            edge=settings.analysis.edge_threshold,
            conf=settings.analysis.confidence_threshold,
            timeout=settings.api.processing_timeout_seconds,
        )

    @app.get("/healthz", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.add_exception_handler(WallVizError, wallviz_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions without leaking internals."""
        logger.opt(exception=exc).error("Unhandled exception on {path}", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "InternalServerError",
                "message": "Internal server error",
                "details": {},
            },
        )

    app.include_router(v1_router)

    return app


app = create_app()


__all__ = ["app", "create_app"]
