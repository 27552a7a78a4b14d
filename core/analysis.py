"""Entry points of the image-analysis pipeline."""

from __future__ import annotations

from core.color.palette import ColorPaletteResult, extract_color_palette
from core.depth.perspective import DepthEstimationResult, estimate_depth
from core.imaging.lighting import adjust_lighting
from core.reconstruct.walls import WallSegmentationResult, segment_walls

__all__ = [
    "ColorPaletteResult",
    "DepthEstimationResult",
    "WallSegmentationResult",
    "adjust_lighting",
    "estimate_depth",
    "extract_color_palette",
    "segment_walls",
]
