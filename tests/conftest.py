import numpy as np
import pytest


def solid(rgba, count):
    """Flat RGBA bytes of `count` identical pixels."""
    return np.tile(np.array(rgba, dtype=np.uint8), count)


@pytest.fixture
def random_rgba():
    """Opaque random image as (width, height, flat RGBA bytes)."""
    rng = np.random.default_rng(1234)
    width, height = 32, 24
    img = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    img[..., 3] = 255
    return width, height, img.reshape(-1)


@pytest.fixture
def primaries():
    """2x2 image of red, green, blue and white."""
    return np.array(
        [
            255, 0, 0, 255,
            0, 255, 0, 255,
            0, 0, 255, 255,
            255, 255, 255, 255,
        ],
        dtype=np.uint8,
    )
