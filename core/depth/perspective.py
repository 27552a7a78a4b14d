from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

import numpy as np

from core.imaging.pixels import PixelSource, as_pixel_buffer
from core.pipeline_config import AnalysisConfig


def _identity() -> List[List[float]]:
    return [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]


@dataclass(frozen=True)
class PerspectiveCorrection:
    angle: float = 0.0
    transform: List[List[float]] = field(default_factory=_identity)


@dataclass(frozen=True)
class DepthEstimationResult:
    depth_map: np.ndarray
    min_depth: float
    max_depth: float
    perspective_correction: PerspectiveCorrection


def tilt_angle(depth_map: np.ndarray) -> float:
    """Tilt in degrees from the change of mean row depth between first and last row."""
    rows = depth_map.shape[0]
    if rows < 2:
        return 0.0
    row_depths = depth_map.mean(axis=1)
    gradient = (row_depths[-1] - row_depths[0]) / rows
    return math.degrees(math.atan(gradient))


def estimate_perspective(depth_map: np.ndarray) -> PerspectiveCorrection:
    # transform stays identity until a real estimator provides one
    return PerspectiveCorrection(angle=tilt_angle(depth_map), transform=_identity())


def estimate_depth(
    buffer: PixelSource,
    width: int,
    height: int,
    *,
    config: AnalysisConfig | None = None,
) -> DepthEstimationResult:
    """
    Placeholder depth estimate.

    The pixels are only checked for shape; the grid is uniform, which makes
    the tilt angle 0. The result shape matches what a real estimator returns.
    """
    if config is None:
        config = AnalysisConfig.default()
    pixels = as_pixel_buffer(buffer, width, height)
    depth_map = np.full((pixels.height, pixels.width), config.depth_fill, dtype=np.float64)
    return DepthEstimationResult(
        depth_map=depth_map,
        min_depth=config.min_depth,
        max_depth=config.max_depth,
        perspective_correction=estimate_perspective(depth_map),
    )


__all__ = [
    "DepthEstimationResult",
    "PerspectiveCorrection",
    "estimate_depth",
    "estimate_perspective",
    "tilt_angle",
]
