# exoquant/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, errors and buffer coercion helpers.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBATuple = Tuple[int, int, int, int]

U8Buffer = NDArray[np.uint8]  # flat (N*4,) RGBA bytes or (N,) indices
U8Pixels = NDArray[np.uint8]  # (N, 4) RGBA rows
Colours = NDArray[np.float64]  # (N, 4) weighted, normalised colour rows
Colour = NDArray[np.float64]  # (4,) one weighted colour
EntryIds = NDArray[np.int64]  # histogram entry ids

BufferLike = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[int]]


# Errors


class EmptyHistogramError(RuntimeError):
    """Raised when an operation needs fed pixels or a palette that does not exist yet."""


# Value objects


@dataclass(frozen=True)
class HistogramEntry:
    """Snapshot of one unique observed colour and its cached resolution data."""

    key: RGBATuple  # untruncated input bytes
    colour: Colour  # shape (4,), weighted, truncated, optionally premultiplied
    count: int
    pal_index: int  # -1 when unresolved
    dither_scale: Colour  # shape (4,), -1 when uncomputed
    dither_index: Tuple[int, int, int, int]  # -1 when uncomputed


# Small helpers


def clamp_value(value: int, lo: int, hi: int) -> int:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def as_u8_flat(data: BufferLike) -> U8Buffer:
    """Coerce bytes, arrays or int sequences to a flat uint8 array without copying when possible."""
    if isinstance(data, np.ndarray):
        if data.dtype != np.uint8:
            raise TypeError(f"expected uint8 buffer, got {data.dtype}")
        return data.reshape(-1)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return np.frombuffer(data, dtype=np.uint8)
    arr = np.asarray(data)
    if arr.size and (arr.min() < 0 or arr.max() > 255):
        raise ValueError("byte values must lie in 0..255")
    return arr.astype(np.uint8).reshape(-1)


def as_pixel_rows(data: BufferLike, count: Optional[int] = None) -> U8Pixels:
    """
    Validate an RGBA byte buffer and view it as (N, 4) rows.

    Args:
      data: flat RGBA bytes (or an (H, W, 4) uint8 array)
      count: number of 4-byte rows to take; all rows when None
    Returns:
      uint8 [count, 4] view
    """
    flat = as_u8_flat(data)
    if flat.size % 4 != 0:
        raise ValueError(f"RGBA buffer length {flat.size} is not a multiple of 4")
    rows = flat.reshape(-1, 4)
    if count is None:
        return rows
    if count < 0:
        raise ValueError("pixel count must be non-negative")
    if count > rows.shape[0]:
        raise ValueError(
            f"buffer holds {rows.shape[0]} RGBA rows, {count} were requested"
        )
    return rows[:count]


def pack_rgba(rows: U8Pixels) -> NDArray[np.uint32]:
    """Pack (N, 4) RGBA rows into r | g<<8 | b<<16 | a<<24 words."""
    wide = rows.astype(np.uint32)
    return wide[:, 0] | (wide[:, 1] << 8) | (wide[:, 2] << 16) | (wide[:, 3] << 24)


def assert_bits_per_channel(bits: int) -> int:
    """Validate the per-channel bit depth (1..8)."""
    if not 1 <= int(bits) <= 8:
        raise ValueError("bits_per_channel must be between 1 and 8")
    return int(bits)


__all__ = [
    # aliases / types
    "RGBATuple",
    "U8Buffer",
    "U8Pixels",
    "Colours",
    "Colour",
    "EntryIds",
    "BufferLike",
    # errors
    "EmptyHistogramError",
    # value objects
    "HistogramEntry",
    # helpers
    "clamp_value",
    "as_u8_flat",
    "as_pixel_rows",
    "pack_rgba",
    "assert_bits_per_channel",
]
