"""HSL color-harmony helpers: complementary, analogous and triadic variants of a color."""

from __future__ import annotations

import colorsys
import re
from dataclasses import dataclass
from typing import Sequence, Tuple

from core.exceptions import InputError

RGB = Tuple[int, int, int]
HSL = Tuple[float, float, float]

HEX_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")

COMPLEMENTARY_OFFSET = 180.0
ANALOGOUS_OFFSETS = (30.0, -30.0)
TRIADIC_OFFSETS = (120.0, 240.0)


@dataclass(frozen=True)
class ColorHarmony:
    complementary: str
    analogous: Tuple[str, str]
    triadic: Tuple[str, str]

    def to_dict(self) -> dict[str, object]:
        return {
            "complementary": self.complementary,
            "analogous": list(self.analogous),
            "triadic": list(self.triadic),
        }


def _to_byte(value: float) -> int:
    return int(min(255, max(0, round(value * 255.0))))


def rgb_to_hex(rgb: Sequence[int]) -> str:
    r, g, b = (int(min(255, max(0, channel))) for channel in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> RGB:
    if not HEX_PATTERN.match(hex_color or ""):
        raise InputError("Expected a #rrggbb color", {"color": str(hex_color)})
    value = hex_color.lstrip("#")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


def rgb_to_hsl(rgb: Sequence[int]) -> HSL:
    """RGB (0-255) -> hue in degrees [0, 360), saturation and lightness in percent."""
    r, g, b = (channel / 255.0 for channel in rgb)
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return (h * 360.0) % 360.0, s * 100.0, l * 100.0


def hsl_to_rgb(hsl: Sequence[float]) -> RGB:
    """Inverse of :func:`rgb_to_hsl`; any hue is wrapped into [0, 360)."""
    h, s, l = hsl
    r, g, b = colorsys.hls_to_rgb((h % 360.0) / 360.0, l / 100.0, s / 100.0)
    return _to_byte(r), _to_byte(g), _to_byte(b)


def rotate_hue(rgb: Sequence[int], degrees: float) -> str:
    """Hex color with the hue shifted by ``degrees`` at the same saturation and lightness."""
    h, s, l = rgb_to_hsl(rgb)
    return rgb_to_hex(hsl_to_rgb(((h + degrees) % 360.0, s, l)))


def generate_harmony(dominant: Sequence[int]) -> ColorHarmony:
    return ColorHarmony(
        complementary=rotate_hue(dominant, COMPLEMENTARY_OFFSET),
        analogous=tuple(rotate_hue(dominant, offset) for offset in ANALOGOUS_OFFSETS),
        triadic=tuple(rotate_hue(dominant, offset) for offset in TRIADIC_OFFSETS),
    )


__all__ = [
    "ColorHarmony",
    "HEX_PATTERN",
    "generate_harmony",
    "hex_to_rgb",
    "hsl_to_rgb",
    "rgb_to_hex",
    "rgb_to_hsl",
    "rotate_hue",
]
