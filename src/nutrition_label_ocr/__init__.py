"""
Nutrition label OCR.

Turns a photo of a printed nutrition label into structured facts:
- imaging: crop, downscale and binarize RGBA pixel buffers
- ocr: recognition engine boundary and the four-step fallback cascade
- parsing: bilingual (English/Arabic) regex extraction of label fields
- pipeline: the three stages wired together
"""

from .domain.models import (
    CascadeOutcome,
    ParsedNutrition,
    PixelBuffer,
    PreprocessMode,
    RecognitionConfig,
)
from .pipeline import scan_label

__all__ = [
    "CascadeOutcome",
    "ParsedNutrition",
    "PixelBuffer",
    "PreprocessMode",
    "RecognitionConfig",
    "scan_label",
]
