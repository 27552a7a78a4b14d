from __future__ import annotations

import cv2
import numpy as np

from core.imaging.pixels import PixelBuffer, to_grayscale

# Sobel needs a full 3x3 neighbourhood
MIN_EDGE_DIMENSION = 3


def detect_edges(gray: np.ndarray) -> np.ndarray:
    """
    Sobel gradient magnitude of a grayscale map.

    Only interior pixels are computed; the outermost 1-pixel border stays 0,
    and maps smaller than 3x3 come back all zero.
    Returns:
        edges: (H, W) uint8 map, magnitude clamped to [0, 255]
    """
    gray = np.asarray(gray)
    if gray.ndim != 2:
        raise ValueError(f"Expected a 2D grayscale map, got shape {gray.shape}")
    h, w = gray.shape
    edges = np.zeros((h, w), dtype=np.uint8)
    if h < MIN_EDGE_DIMENSION or w < MIN_EDGE_DIMENSION:
        return edges

    src = gray.astype(np.float64)
    gx = cv2.Sobel(src, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(src, cv2.CV_64F, 0, 1, ksize=3)
    magnitude = cv2.magnitude(gx, gy)

    interior = magnitude[1:-1, 1:-1]
    edges[1:-1, 1:-1] = np.clip(np.rint(interior), 0, 255).astype(np.uint8)
    return edges


def detect_edges_in_buffer(pixels: PixelBuffer) -> np.ndarray:
    """Grayscale conversion followed by :func:`detect_edges`."""
    return detect_edges(to_grayscale(pixels))


__all__ = ["detect_edges", "detect_edges_in_buffer", "MIN_EDGE_DIMENSION"]
