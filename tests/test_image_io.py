import numpy as np
import pytest
from PIL import Image

from exoquant import quantize_rgba
from exoquant.image_io import image_to_rgba_buffer, indexed_image, indexed_to_rgba


def _gradient_image():
    arr = np.zeros((6, 8, 3), dtype=np.uint8)
    arr[..., 0] = np.arange(8, dtype=np.uint8)[None, :] * 30
    arr[..., 2] = np.arange(6, dtype=np.uint8)[:, None] * 40
    return Image.fromarray(arr)


def test_image_to_rgba_buffer_converts_mode():
    width, height, data = image_to_rgba_buffer(_gradient_image())
    assert (width, height) == (8, 6)
    assert data.shape == (8 * 6 * 4,)
    assert np.all(data.reshape(-1, 4)[:, 3] == 255)


def test_indexed_image_round_trip():
    width, height, data = image_to_rgba_buffer(_gradient_image())
    palette, indices = quantize_rgba(data, width, height, 8)
    im = indexed_image(indices, palette, width, height)
    assert im.mode == "P"
    assert im.size == (width, height)
    assert im.getpixel((3, 2)) == int(indices[2 * width + 3])
    assert "transparency" not in im.info

    expanded = indexed_to_rgba(indices, palette).reshape(-1, 4)
    assert expanded.shape == (width * height, 4)
    assert np.array_equal(expanded[5], palette.reshape(-1, 4)[indices[5]])


def test_indexed_image_keeps_alpha():
    palette = np.array([0, 0, 0, 0, 255, 255, 255, 255], dtype=np.uint8)
    indices = np.array([0, 1, 1, 0], dtype=np.uint8)
    im = indexed_image(indices, palette, 2, 2)
    assert im.info["transparency"] == bytes([0, 255])


def test_indexed_image_rejects_short_buffers():
    palette = np.array([0, 0, 0, 255], dtype=np.uint8)
    with pytest.raises(ValueError):
        indexed_image(np.zeros(3, dtype=np.uint8), palette, 2, 2)
    with pytest.raises(ValueError):
        indexed_image(np.array([0, 1, 0, 0], dtype=np.uint8), palette, 2, 2)
