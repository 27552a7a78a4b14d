from __future__ import annotations

import asyncio
import base64
import time
from typing import Any, Callable, TypeVar

import cv2
import numpy as np
from fastapi import APIRouter, Depends, Request, Response
from loguru import logger
from pydantic import BaseModel

from core.analysis import (
    ColorPaletteResult,
    DepthEstimationResult,
    WallSegmentationResult,
    estimate_depth,
    extract_color_palette,
    segment_walls,
)
from core.exceptions import AnalysisTimeoutError, InputError, ProcessingError
from core.settings import Settings, get_settings
from services.api.image_loader import DefaultImageDecoder, ImageDecoder
from services.api.schemas import (
    BoundsOut,
    ColorHarmonyOut,
    ColorPaletteRequest,
    ColorPaletteResponse,
    DepthOut,
    DepthRequest,
    DepthResponse,
    ModelStatusResponse,
    PaletteOut,
    PerspectiveCorrectionOut,
    SegmentationOut,
    SegmentRequest,
    SegmentResponse,
    WallSegmentOut,
)


router = APIRouter(prefix="/v1", tags=["analysis"])

T = TypeVar("T")

SEGMENT_FAILURE = "Failed to process wall segmentation"
PALETTE_FAILURE = "Failed to extract color palette"
DEPTH_FAILURE = "Failed to estimate depth"

MODEL_NAMES = ["fallback-segmentation", "fallback-color-extraction", "placeholder-depth"]


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_image_decoder(settings: Settings = Depends(get_app_settings)) -> ImageDecoder:
    return DefaultImageDecoder(settings.image)


def _require_image_url(image_url: str | None) -> str:
    if not image_url or not image_url.strip():
        raise InputError("Image URL is required")
    return image_url.strip()


async def _run_analysis(
    image_url: str,
    decoder: ImageDecoder,
    analyse: Callable[..., T],
    render: Callable[[T, float], BaseModel],
    *,
    settings: Settings,
    failure_message: str,
    **kwargs: Any,
) -> Response:
    """Decode, analyse and serialize in a worker thread under the configured deadline.

    ``render`` turns the analysis result and the elapsed milliseconds into the
    response model. Rendering and JSON serialization also run in the thread
    and count against the deadline.
    """
    def _work() -> bytes:
        started = time.perf_counter()
        pixels = decoder(image_url)
        result = analyse(pixels, pixels.width, pixels.height, config=settings.analysis, **kwargs)
        body = render(result, (time.perf_counter() - started) * 1000.0)
        return body.model_dump_json().encode("utf-8")

    timeout = settings.api.processing_timeout_seconds
    try:
        # the worker thread is not interrupted on timeout, only abandoned
        content = await asyncio.wait_for(asyncio.to_thread(_work), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error("{message}: timed out after {timeout}s", message=failure_message, timeout=timeout)
        raise AnalysisTimeoutError(failure_message, {"timeout_seconds": str(timeout)}) from exc
    except InputError:
        raise
    except Exception as exc:
        logger.opt(exception=exc).error("{message}: {error}", message=failure_message, error=str(exc))
        raise ProcessingError(failure_message) from exc
    return Response(content=content, media_type="application/json")


def encode_mask_png(mask: np.ndarray) -> str:
    """Base64 PNG of a boolean mask (255 = wall, 0 = background)."""
    success, encoded = cv2.imencode(".png", mask.astype(np.uint8) * 255)
    if not success:
        raise ProcessingError(SEGMENT_FAILURE, {"stage": "mask-encoding"})
    return base64.b64encode(encoded.tobytes()).decode("ascii")


def render_segmentation(result: WallSegmentationResult, elapsed_ms: float) -> SegmentResponse:
    bounds = result.bounds
    return SegmentResponse(
        segmentation=SegmentationOut(
            mask=encode_mask_png(result.mask),
            confidence=result.confidence,
            bounds=BoundsOut(x=bounds.x, y=bounds.y, width=bounds.width, height=bounds.height),
            wallSegments=[WallSegmentOut(**seg.to_dict()) for seg in result.segments],
            usedFallback=result.used_fallback,
            processingTime=elapsed_ms,
        )
    )


def render_palette(result: ColorPaletteResult, elapsed_ms: float) -> ColorPaletteResponse:
    harmony = result.harmony
    return ColorPaletteResponse(
        palette=PaletteOut(
            colors=list(result.colors),
            dominantColor=result.dominant_color,
            colorHarmony=ColorHarmonyOut(
                complementary=harmony.complementary,
                analogous=list(harmony.analogous),
                triadic=list(harmony.triadic),
            ),
            processingTime=elapsed_ms,
        )
    )


def render_depth(result: DepthEstimationResult, elapsed_ms: float) -> DepthResponse:
    correction = result.perspective_correction
    return DepthResponse(
        depth=DepthOut(
            depthMap=result.depth_map.tolist(),
            minDepth=result.min_depth,
            maxDepth=result.max_depth,
            perspectiveCorrection=PerspectiveCorrectionOut(
                angle=correction.angle,
                transform=correction.transform,
            ),
            processingTime=elapsed_ms,
        )
    )


@router.post("/segment", response_model=SegmentResponse)
async def segment(
    payload: SegmentRequest,
    settings: Settings = Depends(get_app_settings),
    decoder: ImageDecoder = Depends(get_image_decoder),
) -> Response:
    """Detect the likely wall region of an image."""
    return await _run_analysis(
        _require_image_url(payload.imageUrl),
        decoder,
        segment_walls,
        render_segmentation,
        settings=settings,
        failure_message=SEGMENT_FAILURE,
    )


@router.post("/color-palette", response_model=ColorPaletteResponse)
async def color_palette(
    payload: ColorPaletteRequest,
    settings: Settings = Depends(get_app_settings),
    decoder: ImageDecoder = Depends(get_image_decoder),
) -> Response:
    """Extract a k-means color palette and harmony colors of the dominant color."""
    return await _run_analysis(
        _require_image_url(payload.imageUrl),
        decoder,
        extract_color_palette,
        render_palette,
        settings=settings,
        failure_message=PALETTE_FAILURE,
        color_count=payload.colorCount,
        seed=payload.seed,
    )


@router.post("/depth-estimation", response_model=DepthResponse)
async def depth_estimation(
    payload: DepthRequest,
    settings: Settings = Depends(get_app_settings),
    decoder: ImageDecoder = Depends(get_image_decoder),
) -> Response:
    """Placeholder depth map and perspective correction."""
    return await _run_analysis(
        _require_image_url(payload.imageUrl),
        decoder,
        estimate_depth,
        render_depth,
        settings=settings,
        failure_message=DEPTH_FAILURE,
    )


@router.get("/models/status", response_model=ModelStatusResponse)
async def model_status() -> ModelStatusResponse:
    return ModelStatusResponse(initialized=True, models=list(MODEL_NAMES))
