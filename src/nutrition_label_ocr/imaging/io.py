"""Loading and saving label images as :class:`PixelBuffer` values."""

from __future__ import annotations

import os

from PIL import Image, ImageOps

from ..domain.models import PixelBuffer
from ..logging import get_logger
from ..paths import expand_abs

LOG = get_logger("imaging-io")


def load_image(path: str) -> PixelBuffer:
    """Read an image file, honoring EXIF orientation, as RGBA pixels."""
    p = expand_abs(path)
    with Image.open(p) as im:
        im = ImageOps.exif_transpose(im)
        buffer = PixelBuffer.from_image(im)
    LOG.debug(f"Loaded {p} ({buffer.width}x{buffer.height})")
    return buffer


def save_image(buffer: PixelBuffer, path: str) -> str:
    """Write ``buffer`` to ``path``; format follows the file extension."""
    p = expand_abs(path)
    os.makedirs(os.path.dirname(p) or ".", exist_ok=True)
    image = buffer.to_image()
    if os.path.splitext(p)[1].lower() in {".jpg", ".jpeg"}:
        image = image.convert("RGB")
    image.save(p)
    LOG.debug(f"Saved {buffer.width}x{buffer.height} image to {p}")
    return p
