from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from nutrition_label_ocr.domain.models import PixelBuffer, PreprocessMode
from nutrition_label_ocr.imaging.transforms import crop, downscale, preprocess


def _random_buffer(width: int, height: int, seed: int = 0) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    data = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    return PixelBuffer(width=width, height=height, data=data)


def _uniform_buffer(width: int, height: int, rgba) -> PixelBuffer:
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[...] = rgba
    return PixelBuffer(width=width, height=height, data=data)


@pytest.mark.parametrize("width,height,pct", [(100, 60, 70), (37, 53, 50), (10, 10, 100), (641, 479, 83)])
def test_crop_dimensions_and_content(width, height, pct):
    buf = _random_buffer(width, height)
    out = crop(buf, pct)

    exp_w = (width * pct) // 100
    exp_h = (height * pct) // 100
    assert (out.width, out.height) == (exp_w, exp_h)
    assert out.data.shape == (exp_h, exp_w, 4)
    assert len(out) == exp_w * exp_h * 4

    x0 = (width - exp_w) // 2
    y0 = (height - exp_h) // 2
    assert np.array_equal(out.data, buf.data[y0:y0 + exp_h, x0:x0 + exp_w])


def test_crop_full_is_a_copy_not_alias():
    buf = _random_buffer(8, 6)
    out = crop(buf, 100)
    assert out is not buf
    assert np.array_equal(out.data, buf.data)
    assert not np.shares_memory(out.data, buf.data)

    out.data[0, 0, 0] ^= 0xFF
    assert out.data[0, 0, 0] != buf.data[0, 0, 0]


def test_downscale_small_image_returns_same_buffer():
    buf = _random_buffer(300, 200)
    assert downscale(buf, 1200) is buf
    assert downscale(buf, 300) is buf


def test_downscale_landscape_preserves_aspect():
    buf = _random_buffer(2400, 1800)
    out = downscale(buf, 1200)
    assert (out.width, out.height) == (1200, 900)
    assert out.data.shape == (900, 1200, 4)


def test_downscale_portrait_uses_floor():
    buf = _random_buffer(1001, 3000)
    out = downscale(buf, 1200)
    assert out.height == 1200
    assert out.width == 400  # floor(1001 * 0.4) = 400
    assert abs(out.width / out.height - 1001 / 3000) < 1 / out.height + 1e-9


def test_downscale_keeps_at_least_one_pixel_per_side():
    buf = _random_buffer(1000, 2)
    out = downscale(buf, 100)
    # floor(2 * 0.1) would be 0
    assert (out.width, out.height) == (100, 1)
    assert out.data.shape == (1, 100, 4)


def test_downscale_empty_buffer_is_returned_unchanged():
    empty = PixelBuffer(width=0, height=0, data=np.zeros((0, 0, 4), dtype=np.uint8))
    assert downscale(empty, 1200) is empty


@pytest.mark.parametrize("mode", list(PreprocessMode))
def test_preprocess_accepts_empty_buffer(mode):
    empty = PixelBuffer(width=0, height=3, data=np.zeros((3, 0, 4), dtype=np.uint8))
    out = preprocess(empty, mode)
    assert (out.width, out.height) == (0, 3)
    assert out.data.shape == (3, 0, 4)


def test_preprocess_none_is_identity():
    buf = _random_buffer(20, 10)
    assert preprocess(buf, PreprocessMode.NONE) is buf


@pytest.mark.parametrize("mode", [PreprocessMode.GRAYSCALE_THRESHOLD, PreprocessMode.ADAPTIVE_THRESHOLD])
def test_threshold_modes_binarize_and_keep_alpha(mode):
    buf = _random_buffer(40, 30, seed=7)
    original = buf.data.copy()
    out = preprocess(buf, mode)

    rgb = out.data[..., :3]
    assert set(np.unique(rgb)).issubset({0, 255})
    assert np.array_equal(rgb[..., 0], rgb[..., 1])
    assert np.array_equal(rgb[..., 1], rgb[..., 2])
    assert np.array_equal(out.data[..., 3], original[..., 3])
    # input left untouched
    assert np.array_equal(buf.data, original)


def test_grayscale_threshold_cutoff():
    # luma 120 -> stretched 116 -> black; 136 -> 140 -> white
    dark = _uniform_buffer(2, 2, (120, 120, 120, 77))
    light = _uniform_buffer(2, 2, (136, 136, 136, 77))
    assert (preprocess(dark, PreprocessMode.GRAYSCALE_THRESHOLD).data[..., :3] == 0).all()
    assert (preprocess(light, PreprocessMode.GRAYSCALE_THRESHOLD).data[..., :3] == 255).all()


def test_adaptive_threshold_uniform_image_is_white():
    buf = _uniform_buffer(31, 17, (90, 40, 200, 255))
    out = preprocess(buf, PreprocessMode.ADAPTIVE_THRESHOLD)
    assert (out.data[..., :3] == 255).all()


def test_adaptive_threshold_dark_stroke_on_light_background():
    buf = _uniform_buffer(30, 30, (230, 230, 230, 255))
    buf.data[14:16, 5:25, :3] = 20
    out = preprocess(buf, PreprocessMode.ADAPTIVE_THRESHOLD)
    assert (out.data[14:16, 5:25, 0] == 0).all()
    assert out.data[0, 0, 0] == 255
    assert out.data[29, 29, 0] == 255


def test_adaptive_threshold_excludes_out_of_range_neighbours():
    # A 1-pixel-wide bright column at the left edge of a dark image: the corner
    # window holds 8 columns, so the mean is (255 + 7 * 0) / 8 ~ 31.9.
    buf = _uniform_buffer(20, 20, (0, 0, 0, 255))
    buf.data[:, 0, :3] = 255
    out = preprocess(buf, PreprocessMode.ADAPTIVE_THRESHOLD)
    assert (out.data[:, 0, 0] == 255).all()
    # dark pixels: 0 > mean - 10 only where the mean is below 10
    assert out.data[10, 1, 0] == 0
    assert out.data[10, 19, 0] == 255
