"""Pixel-level preparation of label captures for OCR."""

from .io import load_image, save_image
from .transforms import adaptive_threshold, crop, downscale, grayscale_threshold, preprocess

__all__ = [
    "adaptive_threshold",
    "crop",
    "downscale",
    "grayscale_threshold",
    "load_image",
    "preprocess",
    "save_image",
]
