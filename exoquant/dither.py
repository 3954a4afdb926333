# exoquant/dither.py
from __future__ import annotations

"""
2x2 phase dithering against a fixed set of cluster means.

Each unique colour gets a per-channel dither scale (cached on its histogram
entry): the distance from its nearest palette colour to the next palette
colour found by stepping away from the first. A pixel's colour is offset by
scale * DITHER_MATRIX[phase] before the nearest-colour lookup, and the result
is cached per entry and phase.

Phases:
  ordered: (x & 1) + 2 * (y & 1)
  random : uniform in 0..3 per pixel
"""

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .colour_convert import rgba_to_colours
from .constants import (
    DITHER_GAIN,
    DITHER_MATRIX,
    DITHER_STEP_FAR,
    DITHER_STEP_NEAR,
    UNRESOLVED,
)
from .core_types import Colours, U8Buffer, U8Pixels, pack_rgba
from .histogram import Histogram
from .nearest import nearest_colour_indices


def ordered_phases(width: int, height: int) -> NDArray[np.int64]:
    """Row-major phase per pixel for a width x height image."""
    xs = np.arange(width, dtype=np.int64) & 1
    ys = np.arange(height, dtype=np.int64) & 1
    return (xs[None, :] + 2 * ys[:, None]).reshape(-1)


def random_phases(
    count: int, rng: Optional[np.random.Generator] = None
) -> NDArray[np.int64]:
    """Independent uniform phase per pixel."""
    gen = rng if rng is not None else np.random.default_rng()
    return gen.integers(0, 4, size=count, dtype=np.int64)


def derive_dither_scales(colours: Colours, means: Colours) -> Colours:
    """
    Per-channel dither amplitude for each colour row.

    Find the nearest mean i, step 1/3 of the way along -(mean_i - colour) and
    look again; if that still lands on i, step 3x instead. A distinct hit j
    gives 0.8 * |mean_j - mean_i|, otherwise the scale is zero.
    """
    first = nearest_colour_indices(colours, means)
    err = means[first] - colours
    second = nearest_colour_indices(colours - err * DITHER_STEP_NEAR, means)
    retry = second == first
    if np.any(retry):
        second[retry] = nearest_colour_indices(
            colours[retry] - err[retry] * DITHER_STEP_FAR, means
        )
    scales = np.abs(means[second] - means[first]) * DITHER_GAIN
    scales[second == first] = 0.0
    return scales


def map_dithered(
    histogram: Histogram,
    means: Colours,
    rows: U8Pixels,
    phases: NDArray[np.int64],
) -> U8Buffer:
    """
    Map (N, 4) RGBA rows to palette indices with the given per-pixel phases.

    Work is done once per unique colour (scale) and once per unique
    (colour, phase) pair (index). Colours that were fed reuse and fill the
    caches on their histogram entries; unknown colours are computed fresh.
    """
    if rows.shape[0] == 0:
        return np.zeros((0,), dtype=np.uint8)

    uniq_words, first_idx, inverse = np.unique(
        pack_rgba(rows), return_index=True, return_inverse=True
    )
    inverse = inverse.reshape(-1)
    entry_ids = histogram.find_many(uniq_words)
    known = entry_ids >= 0
    colours = rgba_to_colours(rows[first_idx], histogram.transparency)

    # per-colour scale
    scales = np.empty_like(colours)
    cached = np.zeros(known.shape, dtype=bool)
    cached[known] = histogram.dither_scale[entry_ids[known], 0] >= 0.0
    scales[cached] = histogram.dither_scale[entry_ids[cached]]
    todo = ~cached
    if np.any(todo):
        scales[todo] = derive_dither_scales(colours[todo], means)
        store = todo & known
        histogram.dither_scale[entry_ids[store]] = scales[store]

    # per (colour, phase) index
    pair_keys, pair_inverse = np.unique(inverse * 4 + phases, return_inverse=True)
    pair_inverse = pair_inverse.reshape(-1)
    colour_of = pair_keys // 4
    phase_of = pair_keys % 4
    pair_entries = entry_ids[colour_of]

    result = np.full(pair_keys.shape, UNRESOLVED, dtype=np.int64)
    pair_known = pair_entries >= 0
    result[pair_known] = histogram.dither_index[
        pair_entries[pair_known], phase_of[pair_known]
    ]
    todo = result < 0
    if np.any(todo):
        offset = scales[colour_of[todo]] * DITHER_MATRIX[phase_of[todo], None]
        result[todo] = nearest_colour_indices(colours[colour_of[todo]] + offset, means)
        store = todo & pair_known
        histogram.dither_index[pair_entries[store], phase_of[store]] = result[store]

    return result[pair_inverse].astype(np.uint8)


__all__ = [
    "ordered_phases",
    "random_phases",
    "derive_dither_scales",
    "map_dithered",
]
