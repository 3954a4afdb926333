import numpy as np
import pytest

from exoquant import Quantizer, map_with_mode, quantize_rgba


@pytest.mark.parametrize("dither", ["none", "ordered", "random"])
def test_quantize_rgba_modes(random_rgba, dither):
    w, h, data = random_rgba
    palette, indices = quantize_rgba(
        data, w, h, 16, dither=dither, rng=np.random.default_rng(5)
    )
    assert len(palette) == 16 * 4
    assert indices.shape == (w * h,)
    assert int(indices.max()) < 16


def test_quantize_rgba_accepts_image_array():
    img = np.zeros((4, 4, 4), dtype=np.uint8)
    img[:2, :, 0] = 255
    img[..., 3] = 255
    palette, indices = quantize_rgba(img, 4, 4, 2, high_quality=True)
    rows = palette.reshape(-1, 4)
    assert len(rows) == 2
    red = int(np.argmax(rows[:, 0]))
    assert indices.reshape(4, 4)[:2].tolist() == [[red] * 4] * 2
    assert indices.reshape(4, 4)[2:].tolist() == [[1 - red] * 4] * 2


def test_unknown_mode(primaries):
    q = Quantizer()
    q.feed(primaries)
    q.quantize(2)
    with pytest.raises(ValueError):
        map_with_mode(q, "diffusion", 2, 2, primaries)
