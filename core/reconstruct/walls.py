"""
Wall Segmentation

Edge map -> rectangle candidates -> validated regions -> one aggregated
result with a binary mask. A weak detection never fails the call: with no
validated region a centered fallback region is used instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from loguru import logger

from core.imaging.pixels import PixelSource, as_pixel_buffer
from core.pipeline_config import AnalysisConfig
from core.validate.fallback_generation import ensure_minimum_segments
from core.validate.wall_validation import RegionCandidate, clamp_unit, validate_candidates
from core.vision.edge_detection import detect_edges_in_buffer
from core.vision.rectangles import Box, find_rectangles


@dataclass(frozen=True)
class WallSegmentationResult:
    mask: np.ndarray
    confidence: float
    bounds: Box
    segments: Tuple[RegionCandidate, ...]
    used_fallback: bool = False


def envelope(segments: Sequence[RegionCandidate]) -> Box:
    """Smallest box containing every segment."""
    if not segments:
        return Box(x=0, y=0, width=0, height=0)
    min_x = min(seg.x for seg in segments)
    min_y = min(seg.y for seg in segments)
    max_x = max(seg.x + seg.width for seg in segments)
    max_y = max(seg.y + seg.height for seg in segments)
    return Box(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)


def mean_confidence(segments: Sequence[RegionCandidate]) -> float:
    if not segments:
        return 0.0
    return clamp_unit(sum(seg.confidence for seg in segments) / len(segments))


def rasterize_mask(segments: Sequence[RegionCandidate], width: int, height: int) -> np.ndarray:
    """(H, W) bool mask with every segment filled in."""
    mask = np.zeros((height, width), dtype=bool)
    for seg in segments:
        mask[seg.y:seg.y + seg.height, seg.x:seg.x + seg.width] = True
    return mask


def aggregate_segments(
    accepted: Sequence[RegionCandidate],
    width: int,
    height: int,
    config: AnalysisConfig | None = None,
) -> WallSegmentationResult:
    """Merge validated regions, falling back to a synthetic region if there are none."""
    segments, notes = ensure_minimum_segments(accepted, width, height, config)
    if notes.used_fallback:
        logger.info(
            "No wall candidate passed validation on {w}x{h} image, synthesized {count} fallback region(s)",
            w=width,
            h=height,
            count=notes.created_segments,
        )
    return WallSegmentationResult(
        mask=rasterize_mask(segments, width, height),
        confidence=mean_confidence(segments),
        bounds=envelope(segments),
        segments=tuple(segments),
        used_fallback=notes.used_fallback,
    )


def segment_walls(
    buffer: PixelSource,
    width: int,
    height: int,
    *,
    config: AnalysisConfig | None = None,
) -> WallSegmentationResult:
    """Detect the likely wall region of an RGBA image.

    Args:
        buffer: RGBA pixels (bytes-like, (H, W, 4) uint8 array or PixelBuffer). Not modified.
        width: Image width in pixels.
        height: Image height in pixels.
        config: Analysis thresholds (defaults if None).

    Returns:
        WallSegmentationResult with mask, mean confidence, envelope bounds and segments.

    Raises:
        InputError: If the buffer does not describe a width x height RGBA image.
    """
    if config is None:
        config = AnalysisConfig.default()
    pixels = as_pixel_buffer(buffer, width, height)

    edges = detect_edges_in_buffer(pixels)
    boxes = find_rectangles(edges, config)
    accepted = validate_candidates(pixels, boxes, config)
    result = aggregate_segments(accepted, width, height, config)

    logger.debug(
        "Wall segmentation: {segments} segments, confidence={confidence:.3f}, fallback={fallback}",
        segments=len(result.segments),
        confidence=result.confidence,
        fallback=result.used_fallback,
    )
    return result


__all__ = [
    "WallSegmentationResult",
    "aggregate_segments",
    "envelope",
    "mean_confidence",
    "rasterize_mask",
    "segment_walls",
]
