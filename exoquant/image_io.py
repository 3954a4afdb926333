# exoquant/image_io.py
from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import Image, ImageOps

from .core_types import BufferLike, U8Buffer, as_pixel_rows, as_u8_flat

"""
Pillow adapters between images and flat RGBA / index buffers.

The quantizer only sees byte buffers; these helpers convert a PIL image to
one and wrap the results back into a palette ("P" mode) image. Writing that
image to a file is left to the caller.
"""


def image_to_rgba_buffer(im: Image.Image) -> Tuple[int, int, U8Buffer]:
    """Return (width, height, flat RGBA bytes) for any Pillow image."""
    im = ImageOps.exif_transpose(im)
    if im.mode != "RGBA":
        im = im.convert("RGBA")
    arr = np.array(im, dtype=np.uint8)
    height, width = int(arr.shape[0]), int(arr.shape[1])
    return width, height, arr.reshape(-1)


def indexed_image(
    indices: BufferLike, palette: BufferLike, width: int, height: int
) -> Image.Image:
    """
    Build a "P" mode image from per-pixel indices and flat RGBA palette bytes.

    Palette alpha is stored in info["transparency"] when any entry is not opaque.
    """
    idx = as_u8_flat(indices)
    if idx.size < width * height:
        raise ValueError(
            f"index buffer holds {idx.size} entries, {width * height} pixels needed"
        )
    pal_rows = as_pixel_rows(palette)
    if pal_rows.shape[0] and int(idx[: width * height].max()) >= pal_rows.shape[0]:
        raise ValueError("index buffer refers past the end of the palette")

    im = Image.frombytes("P", (width, height), idx[: width * height].tobytes())
    im.putpalette(pal_rows[:, :3].reshape(-1).tolist(), rawmode="RGB")
    alpha = pal_rows[:, 3]
    if np.any(alpha != 255):
        im.info["transparency"] = bytes(alpha.tolist())
    return im


def indexed_to_rgba(indices: BufferLike, palette: BufferLike) -> U8Buffer:
    """Expand indices through the palette back to flat RGBA bytes."""
    idx = as_u8_flat(indices).astype(np.int64)
    pal_rows = as_pixel_rows(palette)
    return pal_rows[idx].reshape(-1)


__all__ = ["image_to_rgba_buffer", "indexed_image", "indexed_to_rgba"]
