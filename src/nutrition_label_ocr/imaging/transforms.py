"""Pure pixel transforms applied to a captured label before OCR.

Every function takes a :class:`PixelBuffer` and returns one. A new buffer is
returned whenever pixels change; ``downscale`` and ``preprocess(NONE)`` hand
back the input object untouched when there is nothing to do.
"""

from __future__ import annotations

import cv2
import numpy as np

from ..domain.models import PixelBuffer, PreprocessMode
from ..logging import get_logger

LOG = get_logger("imaging-transforms")

# Luma weights (ITU-R BT.601)
_LUMA_R = 0.299
_LUMA_G = 0.587
_LUMA_B = 0.114

CONTRAST = 1.5
MIDPOINT = 128.0

ADAPTIVE_BLOCK_SIZE = 15
ADAPTIVE_OFFSET = 10


def _luma(data: np.ndarray) -> np.ndarray:
    rgb = data[..., :3].astype(np.float64)
    return _LUMA_R * rgb[..., 0] + _LUMA_G * rgb[..., 1] + _LUMA_B * rgb[..., 2]


def _with_binary_rgb(source: PixelBuffer, mask: np.ndarray) -> PixelBuffer:
    out = np.empty_like(source.data)
    value = np.where(mask, 255, 0).astype(np.uint8)
    out[..., 0] = value
    out[..., 1] = value
    out[..., 2] = value
    out[..., 3] = source.data[..., 3]
    return PixelBuffer(width=source.width, height=source.height, data=out)


def crop(buffer: PixelBuffer, percentage: float) -> PixelBuffer:
    """Keep the centered ``percentage`` % of both width and height.

    The caller is expected to clamp ``percentage`` into [50, 100].
    """
    crop_w = int(buffer.width * percentage // 100)
    crop_h = int(buffer.height * percentage // 100)
    start_x = (buffer.width - crop_w) // 2
    start_y = (buffer.height - crop_h) // 2

    region = buffer.data[start_y:start_y + crop_h, start_x:start_x + crop_w]
    LOG.debug(
        f"crop {buffer.width}x{buffer.height} @ {percentage}% -> {crop_w}x{crop_h} (offset {start_x},{start_y})"
    )
    return PixelBuffer(width=crop_w, height=crop_h, data=np.ascontiguousarray(region).copy())


def downscale(buffer: PixelBuffer, max_dimension: int) -> PixelBuffer:
    """Shrink so neither side exceeds ``max_dimension``; never enlarges.

    Sides are floored but kept at one pixel or more. Empty buffers come back as is.
    """
    if buffer.width == 0 or buffer.height == 0:
        return buffer
    scale = min(max_dimension / buffer.width, max_dimension / buffer.height, 1)
    if scale >= 1:
        return buffer

    new_w = max(1, int(np.floor(buffer.width * scale)))
    new_h = max(1, int(np.floor(buffer.height * scale)))
    resized = cv2.resize(buffer.data, (new_w, new_h), interpolation=cv2.INTER_AREA)
    LOG.debug(f"downscale {buffer.width}x{buffer.height} -> {new_w}x{new_h} (scale={scale:.4f})")
    return PixelBuffer(width=new_w, height=new_h, data=np.ascontiguousarray(resized))


def grayscale_threshold(buffer: PixelBuffer) -> PixelBuffer:
    """Global binarization after a 1.5x contrast stretch around mid-gray."""
    adjusted = (_luma(buffer.data) - MIDPOINT) * CONTRAST + MIDPOINT
    return _with_binary_rgb(buffer, adjusted > MIDPOINT)


def adaptive_threshold(
    buffer: PixelBuffer,
    block_size: int = ADAPTIVE_BLOCK_SIZE,
    offset: float = ADAPTIVE_OFFSET,
) -> PixelBuffer:
    """Binarize each pixel against the mean of its local window.

    The window is clipped at the image borders: neighbours outside the image
    count towards neither the sum nor the number of samples. Means come from
    the grayscale plane only, never from already thresholded output.
    """
    h, w = buffer.height, buffer.width
    if h == 0 or w == 0:
        return _with_binary_rgb(buffer, np.zeros((h, w), dtype=bool))

    gray = np.clip(np.rint(_luma(buffer.data)), 0, 255).astype(np.uint8)

    half = block_size // 2
    integral = cv2.integral(gray, sdepth=cv2.CV_64F)  # (h + 1, w + 1)

    ys = np.arange(h)
    xs = np.arange(w)
    y0 = np.clip(ys - half, 0, h)
    y1 = np.clip(ys + half + 1, 0, h)
    x0 = np.clip(xs - half, 0, w)
    x1 = np.clip(xs + half + 1, 0, w)

    window_sum = (
        integral[np.ix_(y1, x1)]
        - integral[np.ix_(y0, x1)]
        - integral[np.ix_(y1, x0)]
        + integral[np.ix_(y0, x0)]
    )
    count = np.outer(y1 - y0, x1 - x0)
    mean = window_sum / count

    return _with_binary_rgb(buffer, gray.astype(np.float64) > (mean - offset))


def preprocess(buffer: PixelBuffer, mode: PreprocessMode) -> PixelBuffer:
    if mode == PreprocessMode.NONE:
        return buffer
    if mode == PreprocessMode.GRAYSCALE_THRESHOLD:
        return grayscale_threshold(buffer)
    if mode == PreprocessMode.ADAPTIVE_THRESHOLD:
        return adaptive_threshold(buffer)
    raise ValueError(f"Unknown preprocess mode: {mode!r}")
