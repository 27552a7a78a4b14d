from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from core.exceptions import InputError

CHANNELS = 4

# Luminance weights (ITU-R BT.601)
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114


@dataclass(frozen=True)
class PixelBuffer:
    """Read-only RGBA pixels of one decoded image.

    ``data`` has shape (height, width, 4) and dtype uint8. It is a read-only
    view; the memory it was built from belongs to the caller.
    """

    data: np.ndarray
    width: int
    height: int

    @classmethod
    def from_bytes(cls, buffer: bytes | bytearray | memoryview, width: int, height: int) -> "PixelBuffer":
        _check_dimensions(width, height)
        raw = np.frombuffer(buffer, dtype=np.uint8)
        expected = width * height * CHANNELS
        if raw.size != expected:
            raise InputError(
                "Pixel buffer length does not match image dimensions",
                {"expected": str(expected), "actual": str(raw.size)},
            )
        view = raw.reshape(height, width, CHANNELS)
        view.flags.writeable = False
        return cls(data=view, width=width, height=height)

    @classmethod
    def from_array(cls, array: np.ndarray, width: int | None = None, height: int | None = None) -> "PixelBuffer":
        """Wrap an (H, W, 4) uint8 array or a flat RGBA array of length W*H*4."""
        arr = np.asarray(array)
        if arr.dtype != np.uint8:
            raise InputError("Pixel array must have dtype uint8", {"dtype": str(arr.dtype)})
        if arr.ndim == 1:
            if width is None or height is None:
                raise InputError("Flat pixel arrays need explicit width and height")
            return cls.from_bytes(np.ascontiguousarray(arr), width, height)
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise InputError("Pixel array must have shape (height, width, 4)", {"shape": str(arr.shape)})
        h, w = int(arr.shape[0]), int(arr.shape[1])
        if (width is not None and width != w) or (height is not None and height != h):
            raise InputError(
                "Pixel array shape does not match image dimensions",
                {"shape": str(arr.shape), "width": str(width), "height": str(height)},
            )
        _check_dimensions(w, h)
        view = arr.view()
        view.flags.writeable = False
        return cls(data=view, width=w, height=h)

    @property
    def rgb(self) -> np.ndarray:
        """(H, W, 3) view of the color channels."""
        return self.data[:, :, :3]


PixelSource = Union[PixelBuffer, np.ndarray, bytes, bytearray, memoryview]


def _check_dimensions(width: int, height: int) -> None:
    if int(width) <= 0 or int(height) <= 0:
        raise InputError(
            "Image dimensions must be positive",
            {"width": str(width), "height": str(height)},
        )


def as_pixel_buffer(buffer: PixelSource, width: int, height: int) -> PixelBuffer:
    """Normalize any accepted pixel source into a PixelBuffer of the given size."""
    if isinstance(buffer, PixelBuffer):
        if buffer.width != width or buffer.height != height:
            raise InputError(
                "Pixel buffer size does not match image dimensions",
                {"buffer": f"{buffer.width}x{buffer.height}", "requested": f"{width}x{height}"},
            )
        return buffer
    if isinstance(buffer, np.ndarray):
        return PixelBuffer.from_array(buffer, width, height)
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return PixelBuffer.from_bytes(buffer, width, height)
    raise InputError("Unsupported pixel buffer type", {"type": type(buffer).__name__})


def to_grayscale(pixels: PixelBuffer) -> np.ndarray:
    """Luminance map (H, W) uint8 using 0.299R + 0.587G + 0.114B."""
    rgb = pixels.rgb.astype(np.float64)
    luma = LUMA_R * rgb[:, :, 0] + LUMA_G * rgb[:, :, 1] + LUMA_B * rgb[:, :, 2]
    return np.clip(np.rint(luma), 0, 255).astype(np.uint8)


__all__ = ["PixelBuffer", "PixelSource", "as_pixel_buffer", "to_grayscale"]
