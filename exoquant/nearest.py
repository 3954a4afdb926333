# exoquant/nearest.py
from __future__ import annotations

"""
Brute-force nearest palette colour in weighted RGBA space.
"""

import numpy as np
from numpy.typing import NDArray

from .constants import NEAREST_CHUNK_ROWS
from .core_types import Colours


def nearest_colour_indices(queries: Colours, means: Colours) -> NDArray[np.int64]:
    """
    For each query row pick the closest mean by squared Euclidean distance
    over all 4 channels. Ties go to the lowest index (argmin keeps the first).

    Args:
      queries: float64 [K, 4]
      means: float64 [M, 4], M >= 1
    Returns:
      int64 [K]
    """
    queries = np.asarray(queries, dtype=np.float64).reshape(-1, 4)
    means = np.asarray(means, dtype=np.float64).reshape(-1, 4)
    if means.shape[0] == 0:
        raise ValueError("nearest-colour search needs at least one palette colour")
    out = np.empty((queries.shape[0],), dtype=np.int64)
    for start in range(0, queries.shape[0], NEAREST_CHUNK_ROWS):
        block = queries[start : start + NEAREST_CHUNK_ROWS]
        dist2 = np.zeros((block.shape[0], means.shape[0]), dtype=np.float64)
        for c in range(4):
            diff = block[:, c, None] - means[None, :, c]
            dist2 += diff * diff
        out[start : start + block.shape[0]] = np.argmin(dist2, axis=1)
    return out


__all__ = ["nearest_colour_indices"]
