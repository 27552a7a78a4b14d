from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np
from loguru import logger

from core.pipeline_config import AnalysisConfig


@dataclass(frozen=True)
class Box:
    """Axis-aligned pixel box, ``x``/``y`` is the top-left corner."""

    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height


def _first_crossing(line: np.ndarray, threshold: int) -> int:
    """Offset of the first value above ``threshold``, 0 when there is none."""
    hits = np.flatnonzero(line > threshold)
    return int(hits[0]) if hits.size else 0


def find_box_at(edges: np.ndarray, x: int, y: int, config: AnalysisConfig) -> Box | None:
    """
    Walk right along row ``y`` and down along column ``x`` from the seed.

    Each axis stops at the first edge value above ``edge_threshold``; the
    distance to it is the box extent on that axis. Both axes are walked
    independently, so the result is a rough guess rather than a contour.
    """
    h, w = edges.shape
    row = edges[y, x:min(x + config.max_walk, w)]
    column = edges[y:min(y + config.max_walk, h), x]
    width = _first_crossing(row, config.edge_threshold)
    height = _first_crossing(column, config.edge_threshold)
    if width > config.min_box_size and height > config.min_box_size:
        return Box(x=x, y=y, width=width, height=height)
    return None


def find_rectangles(edges: np.ndarray, config: AnalysisConfig | None = None) -> List[Box]:
    """Raw box candidates from seeds placed every ``grid_step`` pixels, row-major."""
    if config is None:
        config = AnalysisConfig.default()
    h, w = edges.shape
    boxes: List[Box] = []
    for y in range(0, h, config.grid_step):
        for x in range(0, w, config.grid_step):
            box = find_box_at(edges, x, y, config)
            if box is not None:
                boxes.append(box)
    logger.debug(
        "Rectangle search: {count} raw candidates on {w}x{h} edge map",
        count=len(boxes),
        w=w,
        h=h,
    )
    return boxes


__all__ = ["Box", "find_box_at", "find_rectangles"]
