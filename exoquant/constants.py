# exoquant/constants.py
"""
Tunables shared across the quantizer.

- Channel weights (CHANNEL_WEIGHTS) applied to [0,1]-normalised channels
- Histogram hashing (HASH_BITS, HASH_SIZE)
- Palette limits and implicit relaxation passes
- Dither offsets and scale derivation factors
"""
from __future__ import annotations

from typing import Tuple

import numpy as np

# =========================
# Colour model
# =========================

# Per-channel emphasis in R, G, B, A order. Green counts most, blue least.
SCALE_R = 1.0
SCALE_G = 1.2
SCALE_B = 0.8
SCALE_A = 1.0

CHANNEL_WEIGHTS: Tuple[float, float, float, float] = (SCALE_R, SCALE_G, SCALE_B, SCALE_A)
CHANNEL_WEIGHTS_ARRAY = np.array(CHANNEL_WEIGHTS, dtype=np.float64)

# Palette export multiplies by this instead of 255 so truncation lands on 0..255.
EXPORT_SCALE = 255.9

# Default bits per channel (8 = no truncation).
DEFAULT_BITS_PER_CHANNEL = 8

# =========================
# Histogram
# =========================

HASH_BITS = 16
HASH_SIZE = 1 << HASH_BITS

# Sentinels for per-entry caches.
UNRESOLVED = -1
UNCOMPUTED = -1.0

# =========================
# Palette building
# =========================

MAX_COLOURS = 256

# Relaxation passes run before the first palette read or image map.
IMPLICIT_OPTIMIZE_PASSES = 4

# Query rows per chunk in the vectorised nearest-colour search.
NEAREST_CHUNK_ROWS = 16_384

# =========================
# Dithering
# =========================

# Offsets for the 4 phases of a 2x2 tile; they sum to zero.
DITHER_MATRIX = np.array([-0.375, 0.125, 0.375, -0.125], dtype=np.float64)

# Step along the negative error vector when searching for a second palette colour,
# then the wider retry step.
DITHER_STEP_NEAR = 1.0 / 3.0
DITHER_STEP_FAR = 3.0

# Fraction of the distance between the two palette colours used as dither amplitude.
DITHER_GAIN = 0.8

__all__ = [
    "SCALE_R",
    "SCALE_G",
    "SCALE_B",
    "SCALE_A",
    "CHANNEL_WEIGHTS",
    "CHANNEL_WEIGHTS_ARRAY",
    "EXPORT_SCALE",
    "DEFAULT_BITS_PER_CHANNEL",
    "HASH_BITS",
    "HASH_SIZE",
    "UNRESOLVED",
    "UNCOMPUTED",
    "MAX_COLOURS",
    "IMPLICIT_OPTIMIZE_PASSES",
    "NEAREST_CHUNK_ROWS",
    "DITHER_MATRIX",
    "DITHER_STEP_NEAR",
    "DITHER_STEP_FAR",
    "DITHER_GAIN",
]
