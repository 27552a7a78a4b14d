from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from core.pipeline_config import AnalysisConfig
from core.validate.wall_validation import RegionCandidate


@dataclass
class FallbackNotes:
    created_segments: int = 0
    used_fallback: bool = False


def _centered_extent(total: int, ratio: float) -> Tuple[int, int]:
    """Offset and length of a centered span covering ``ratio`` of ``total`` pixels."""
    length = max(1, min(total, int(round(total * ratio))))
    offset = (total - length) // 2
    return offset, length


def synthesize_fallback_region(width: int, height: int, config: AnalysisConfig | None = None) -> RegionCandidate:
    """Centered region of 80% x 60% of the image (by default) with a fixed confidence."""
    if config is None:
        config = AnalysisConfig.default()
    x, w = _centered_extent(width, config.fallback_width_ratio)
    y, h = _centered_extent(height, config.fallback_height_ratio)
    return RegionCandidate(x=x, y=y, width=w, height=h, confidence=config.fallback_confidence)


def ensure_minimum_segments(
    segments: Sequence[RegionCandidate],
    width: int,
    height: int,
    config: AnalysisConfig | None = None,
) -> Tuple[List[RegionCandidate], FallbackNotes]:
    """Ensure there is at least one wall region by synthesizing a fallback.

    Returns the segment list and notes about what was created.
    """
    notes = FallbackNotes()
    out = list(segments)
    if not out:
        out.append(synthesize_fallback_region(width, height, config))
        notes.created_segments = 1
        notes.used_fallback = True
    return out, notes


__all__ = ["FallbackNotes", "ensure_minimum_segments", "synthesize_fallback_region"]
