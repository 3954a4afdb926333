# exoquant/mode.py
from __future__ import annotations
from typing import Literal, Optional

import numpy as np

from .core_types import BufferLike, U8Buffer
from .quantizer import Quantizer

"""
Dither mode selection helpers.

Exports:
- DitherMode: Literal["none", "ordered", "random"]
- map_with_mode(quantizer, mode, width, height, pixels, rng=None) -> indices

Notes:
- "none" maps every pixel to its nearest palette colour.
- "ordered" uses the 2x2 phase pattern and is deterministic.
- "random" draws a phase per pixel; pass a seeded Generator for repeatable output.
"""


DitherMode = Literal["none", "ordered", "random"]
DITHER_MODES = ("none", "ordered", "random")


def map_with_mode(
    quantizer: Quantizer,
    mode: DitherMode,
    width: int,
    height: int,
    pixels: BufferLike,
    rng: Optional[np.random.Generator] = None,
) -> U8Buffer:
    """
    Dispatch to the quantizer's mapper for `mode`.
    - "none"    -> map_image(width * height, ...)
    - "ordered" -> map_image_ordered(width, height, ...)
    - "random"  -> map_image_random(width * height, ..., rng)
    """
    if mode == "none":
        return quantizer.map_image(width * height, pixels)
    if mode == "ordered":
        return quantizer.map_image_ordered(width, height, pixels)
    if mode == "random":
        return quantizer.map_image_random(width * height, pixels, rng)
    raise ValueError(f"unknown dither mode {mode!r}; expected one of {DITHER_MODES}")


__all__ = ["DitherMode", "DITHER_MODES", "map_with_mode"]
