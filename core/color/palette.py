from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from loguru import logger

from core.color.clustering import SeedLike, kmeans, make_rng, sample_colors
from core.color.harmony import ColorHarmony, generate_harmony, rgb_to_hex
from core.imaging.pixels import PixelSource, as_pixel_buffer
from core.pipeline_config import AnalysisConfig


@dataclass(frozen=True)
class ColorPaletteResult:
    colors: Tuple[str, ...]
    dominant_color: str
    harmony: ColorHarmony


def extract_color_palette(
    buffer: PixelSource,
    width: int,
    height: int,
    color_count: int | None = None,
    *,
    config: AnalysisConfig | None = None,
    seed: SeedLike = None,
) -> ColorPaletteResult:
    """Representative colors of an image plus harmony colors of the dominant one.

    The dominant color is the first cluster. Without ``seed`` the initial
    centroids, and therefore the palette, vary between calls.
    """
    if config is None:
        config = AnalysisConfig.default()
    if color_count is None:
        color_count = config.default_color_count
    pixels = as_pixel_buffer(buffer, width, height)

    samples = sample_colors(pixels, config.sample_stride)
    centroids = kmeans(
        samples,
        color_count,
        iterations=config.kmeans_iterations,
        rng=make_rng(seed),
    )
    dominant = centroids[0]
    result = ColorPaletteResult(
        colors=tuple(rgb_to_hex(color) for color in centroids),
        dominant_color=rgb_to_hex(dominant),
        harmony=generate_harmony(dominant),
    )
    logger.debug("Palette extracted: {colors}", colors=", ".join(result.colors))
    return result


__all__ = ["ColorPaletteResult", "extract_color_palette"]
