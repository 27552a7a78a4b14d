"""
Wall Candidate Validation

Scores raw rectangle candidates by how "wall-like" their pixels are: walls in
interior photos tend to be neither very dark nor very bright, and close to
neutral in color.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import numpy as np
from loguru import logger

from core.imaging.pixels import PixelBuffer
from core.pipeline_config import AnalysisConfig
from core.vision.rectangles import Box


def clamp_unit(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


@dataclass(frozen=True)
class RegionCandidate:
    """Axis-aligned wall region with a plausibility score in [0, 1]."""

    x: int
    y: int
    width: int
    height: int
    confidence: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Region must have positive size, got {self.width}x{self.height}")
        object.__setattr__(self, "confidence", clamp_unit(self.confidence))

    @property
    def box(self) -> Box:
        return Box(x=self.x, y=self.y, width=self.width, height=self.height)

    def to_dict(self) -> dict[str, float]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "confidence": self.confidence,
        }


def wall_like_mask(rgb: np.ndarray, config: AnalysisConfig) -> np.ndarray:
    """Boolean mask of mid-brightness, low-saturation pixels in an (H, W, 3) block."""
    channels = rgb.astype(np.int16)
    brightness = channels.sum(axis=2) / 3.0
    spread = channels.max(axis=2) - channels.min(axis=2)
    return (
        (brightness > config.brightness_min)
        & (brightness < config.brightness_max)
        & (spread < config.max_channel_spread)
    )


def score_candidate(pixels: PixelBuffer, box: Box, config: AnalysisConfig | None = None) -> float:
    """Fraction of pixels inside ``box`` that pass the wall-like test (0 for an empty box)."""
    if config is None:
        config = AnalysisConfig.default()
    x0, y0 = max(0, box.x), max(0, box.y)
    x1, y1 = min(box.x2, pixels.width), min(box.y2, pixels.height)
    if x1 <= x0 or y1 <= y0:
        return 0.0
    block = pixels.rgb[y0:y1, x0:x1]
    return clamp_unit(float(wall_like_mask(block, config).mean()))


def validate_candidates(
    pixels: PixelBuffer,
    boxes: Iterable[Box],
    config: AnalysisConfig | None = None,
) -> List[RegionCandidate]:
    """Score every box and keep those at or above ``confidence_threshold``, in input order."""
    if config is None:
        config = AnalysisConfig.default()
    accepted: List[RegionCandidate] = []
    rejected = 0
    for box in boxes:
        confidence = score_candidate(pixels, box, config)
        if confidence < config.confidence_threshold:
            rejected += 1
            continue
        accepted.append(
            RegionCandidate(
                x=box.x,
                y=box.y,
                width=box.width,
                height=box.height,
                confidence=confidence,
            )
        )
    logger.debug(
        "Wall validation: {accepted} accepted, {rejected} rejected (threshold={threshold})",
        accepted=len(accepted),
        rejected=rejected,
        threshold=config.confidence_threshold,
    )
    return accepted


__all__ = [
    "RegionCandidate",
    "clamp_unit",
    "score_candidate",
    "validate_candidates",
    "wall_like_mask",
]
