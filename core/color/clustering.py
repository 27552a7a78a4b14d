"""
K-Means Color Clustering

Fixed-budget k-means over RGB samples. Centroids start at randomly drawn
samples; a cluster that loses all its members keeps its previous centroid,
so exactly k colors always come back.
"""

from __future__ import annotations

from typing import List, Protocol, Tuple, Union

import numpy as np
from loguru import logger

from core.exceptions import InputError
from core.imaging.pixels import PixelBuffer

RGB = Tuple[int, int, int]


class IndexSampler(Protocol):
    def integers(self, low: int, high: int, size: int) -> np.ndarray: ...


SeedLike = Union[int, np.random.Generator, None]


def make_rng(seed: SeedLike = None) -> np.random.Generator:
    """Generator from an int seed, an existing Generator, or OS entropy."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def sample_colors(pixels: PixelBuffer, stride: int = 10) -> np.ndarray:
    """RGB of every ``stride``-th pixel in row-major order, shape (n, 3) float64."""
    if stride < 1:
        raise InputError("Sampling stride must be at least 1", {"stride": str(stride)})
    flat = pixels.data.reshape(-1, 4)
    return flat[::stride, :3].astype(np.float64)


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def assign_clusters(samples: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the nearest centroid for every sample; ties go to the lowest index.

    Memory stays O(n): only the best distance and label so far are kept per
    sample, never the full n x k distance matrix.
    """
    n = samples.shape[0]
    best_dist = np.full(n, np.inf, dtype=np.float64)
    best_label = np.zeros(n, dtype=np.intp)
    diff = np.empty_like(samples, dtype=np.float64)
    dist = np.empty(n, dtype=np.float64)
    for idx, centroid in enumerate(centroids):
        np.subtract(samples, centroid, out=diff)
        np.einsum("ij,ij->i", diff, diff, out=dist)
        # strict < keeps the earlier centroid on ties
        closer = dist < best_dist
        best_dist[closer] = dist[closer]
        best_label[closer] = idx
    return best_label


def update_centroids(samples: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Rounded member mean per cluster; empty clusters keep their centroid."""
    updated = centroids.copy()
    for idx in range(centroids.shape[0]):
        members = samples[labels == idx]
        if members.shape[0]:
            updated[idx] = _round_half_up(members.mean(axis=0))
    return updated


def kmeans(
    samples: np.ndarray,
    k: int,
    *,
    iterations: int = 10,
    rng: IndexSampler | None = None,
) -> List[RGB]:
    """
    Cluster RGB samples into exactly ``k`` colors.

    Args:
        samples: (n, 3) array of RGB values.
        k: Number of clusters, at least 1.
        iterations: Number of assign/update rounds; there is no early stop.
        rng: Source of the initial sample indices (``integers(low, high, size)``).

    Returns:
        k integer RGB tuples, in centroid order. Duplicates are possible.
    """
    if k < 1:
        raise InputError("Color count must be at least 1", {"k": str(k)})
    samples = np.asarray(samples, dtype=np.float64).reshape(-1, 3)
    if samples.shape[0] == 0:
        raise InputError("Cannot cluster an empty sample set")
    if rng is None:
        rng = make_rng()

    initial = np.asarray(rng.integers(0, samples.shape[0], size=k), dtype=np.intp)
    centroids = samples[initial].copy()

    for _ in range(iterations):
        labels = assign_clusters(samples, centroids)
        centroids = update_centroids(samples, labels, centroids)

    logger.debug(
        "k-means: {k} centroids over {n} samples after {iterations} iterations",
        k=k,
        n=samples.shape[0],
        iterations=iterations,
    )
    return [tuple(int(channel) for channel in centroid) for centroid in np.clip(centroids, 0, 255)]


__all__ = [
    "IndexSampler",
    "SeedLike",
    "assign_clusters",
    "kmeans",
    "make_rng",
    "sample_colors",
    "update_centroids",
]
