from __future__ import annotations

import numpy as np

from core.exceptions import InputError
from core.imaging.pixels import PixelBuffer


def contrast_factor(contrast: float) -> float:
    """Standard contrast correction factor for a contrast level in (-259, 259)."""
    if not -259.0 < contrast < 259.0:
        raise InputError("Contrast must lie strictly between -259 and 259", {"contrast": str(contrast)})
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def adjust_lighting(pixels: PixelBuffer, brightness: float = 0.0, contrast: float = 0.0) -> PixelBuffer:
    """
    Apply a brightness offset followed by a contrast stretch around 128.

    Each step clamps to [0, 255]. Alpha is left untouched and a new buffer is
    returned; ``pixels`` is not modified.
    """
    factor = contrast_factor(contrast)
    out = pixels.data.astype(np.float64)
    rgb = out[:, :, :3]
    rgb = np.clip(rgb + brightness, 0.0, 255.0)
    rgb = np.clip(factor * (rgb - 128.0) + 128.0, 0.0, 255.0)
    out[:, :, :3] = np.rint(rgb)
    return PixelBuffer.from_array(out.astype(np.uint8))


__all__ = ["adjust_lighting", "contrast_factor"]
