from .models import (
    CascadeOutcome,
    Language,
    OcrAttemptResult,
    ParsedNutrition,
    PixelBuffer,
    PreprocessMode,
    RecognitionConfig,
    SegmentationMode,
)
from .intake import compute_total_calories

__all__ = [
    "CascadeOutcome",
    "Language",
    "OcrAttemptResult",
    "ParsedNutrition",
    "PixelBuffer",
    "PreprocessMode",
    "RecognitionConfig",
    "SegmentationMode",
    "compute_total_calories",
]
