# exoquant/colour_convert.py
from __future__ import annotations

"""
Conversions between 8-bit RGBA rows and the weighted colour space.

Exports:
  channel_mask(bits)
  rgba_to_colours(rows, transparency, bits=8)
  colours_to_rgba(colours, transparency, bits=8)
  palette_rgba_to_colours(rows)

Colours are R,G,B,A rows normalised to [0,1] and multiplied by
CHANNEL_WEIGHTS. With transparency on, R,G,B are premultiplied by A.
"""

import numpy as np

from .constants import CHANNEL_WEIGHTS_ARRAY, EXPORT_SCALE
from .core_types import Colours, U8Buffer, U8Pixels


def channel_mask(bits: int) -> int:
    """Byte mask keeping the top `bits` bits of a channel (0xFF for 8 bits)."""
    return (0xFF00 >> bits) & 0xFF


def rgba_to_colours(rows: U8Pixels, transparency: bool, bits: int = 8) -> Colours:
    """
    Map (N, 4) uint8 rows into weighted colour space.

    R, G and B are truncated to `bits` bits first; alpha keeps full precision.
    Returns float64 [N, 4].
    """
    src = rows.astype(np.int64)
    if bits < 8:
        src[:, :3] &= channel_mask(bits)
    colours = src.astype(np.float64) / 255.0 * CHANNEL_WEIGHTS_ARRAY
    if transparency:
        colours[:, :3] *= colours[:, 3:4]
    return colours


def colours_to_rgba(colours: Colours, transparency: bool, bits: int = 8) -> U8Buffer:
    """
    Convert weighted colours back to a flat RGBA byte buffer.

    Premultiplied R,G,B are divided by A (when A != 0), scaled by 255.9 and
    truncated. R,G,B are then rounded to `bits` bits by adding half a step
    before masking; the sum is clamped to 255 so it cannot wrap to 0.
    """
    vals = np.array(colours, dtype=np.float64, copy=True).reshape(-1, 4)
    if transparency:
        alpha = vals[:, 3:4]
        safe = np.where(alpha != 0.0, alpha, 1.0)
        vals[:, :3] = np.where(alpha != 0.0, vals[:, :3] / safe, vals[:, :3])
    scaled = vals / CHANNEL_WEIGHTS_ARRAY * EXPORT_SCALE
    out = np.clip(np.trunc(scaled), 0, 255).astype(np.int64)
    if bits < 8:
        half = (1 << (8 - bits)) // 2
        out[:, :3] = np.minimum(out[:, :3] + half, 255) & channel_mask(bits)
    return out.astype(np.uint8).reshape(-1)


def palette_rgba_to_colours(rows: U8Pixels) -> Colours:
    """Inverse of the export scaling for externally supplied palette rows (no premultiply)."""
    return rows.astype(np.float64) * CHANNEL_WEIGHTS_ARRAY / EXPORT_SCALE


__all__ = [
    "channel_mask",
    "rgba_to_colours",
    "colours_to_rgba",
    "palette_rgba_to_colours",
]
