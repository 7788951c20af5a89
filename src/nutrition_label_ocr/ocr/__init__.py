"""OCR capability boundary and the fallback cascade that drives it."""

from .engine import (
    DEFAULT_DPI,
    RecognitionEngine,
    RecognitionSession,
    TesseractEngine,
    TesseractSession,
)
from .cascade import CASCADE, CascadeCancelled, run_attempt, run_ocr_with_fallbacks

__all__ = [
    "CASCADE",
    "CascadeCancelled",
    "DEFAULT_DPI",
    "RecognitionEngine",
    "RecognitionSession",
    "TesseractEngine",
    "TesseractSession",
    "run_attempt",
    "run_ocr_with_fallbacks",
]
