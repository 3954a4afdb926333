# exoquant/run.py
from __future__ import annotations

"""
One-shot quantization pipeline.

  quantize_rgba(pixels, width, height, n_colours, *, dither="none", ...)
    -> (palette, indices)

Feeds the image, builds the palette, maps every pixel and returns the flat
RGBA palette bytes (4 per colour) with one index byte per pixel.
"""

import time
from typing import Optional, Tuple

import numpy as np

from .constants import DEFAULT_BITS_PER_CHANNEL
from .core_types import BufferLike, U8Buffer
from .mode import DitherMode, map_with_mode
from .quantizer import Quantizer
from .utils import debug_log, format_seconds_compact, index_usage, palette_rows_to_hex


def quantize_rgba(
    pixels: BufferLike,
    width: int,
    height: int,
    n_colours: int = 256,
    *,
    dither: DitherMode = "none",
    high_quality: bool = False,
    bits_per_channel: int = DEFAULT_BITS_PER_CHANNEL,
    transparency: bool = True,
    rng: Optional[np.random.Generator] = None,
    debug: bool = False,
) -> Tuple[U8Buffer, U8Buffer]:
    """
    Reduce an RGBA image to at most `n_colours` palette entries.

    Args:
      pixels: flat RGBA bytes (width * height * 4) or a uint8 [H, W, 4] array
      width, height: image size in pixels
      n_colours: target palette size, clamped to 1..256
      dither: "none" | "ordered" | "random"
      high_quality: relax after every split (slower, lower error)
      bits_per_channel: R/G/B precision, 1..8
      transparency: premultiply by alpha
      rng: generator for random dithering
      debug: print progress and palette usage
    Returns:
      (palette uint8 [P*4], indices uint8 [width*height])
    """
    started = time.perf_counter()
    q = Quantizer(bits_per_channel, transparency, debug=debug)
    q.feed(pixels)
    if high_quality:
        q.quantize_hq(n_colours)
    else:
        q.quantize(n_colours)
    palette = q.get_palette(n_colours)
    indices = map_with_mode(q, dither, width, height, pixels, rng)

    if debug:
        hexes = palette_rows_to_hex(palette)
        for idx, count in index_usage(indices, len(hexes))[:16]:
            debug_log(f"  {idx:3d}  {hexes[idx]}  {count:,}px")
        debug_log(
            f"quantize_rgba  colours={len(hexes)}  dither={dither}  "
            f"total={format_seconds_compact(time.perf_counter() - started)}"
        )
    return palette, indices


__all__ = ["quantize_rgba"]
