from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

import numpy as np
from PIL import Image


@dataclass
class PixelBuffer:
    """RGBA pixels, row-major, 4 bytes per pixel.

    ``data`` is a contiguous ``uint8`` array of shape ``(height, width, 4)``.
    """

    width: int
    height: int
    data: np.ndarray

    @classmethod
    def from_bytes(cls, width: int, height: int, raw: bytes) -> "PixelBuffer":
        expected = width * height * 4
        if len(raw) != expected:
            raise ValueError(f"RGBA payload must be {expected} bytes for {width}x{height}, got {len(raw)}")
        arr = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, 4).copy()
        return cls(width=width, height=height, data=arr)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        rgba = image.convert("RGBA")
        w, h = rgba.size
        arr = np.array(rgba, dtype=np.uint8)
        return cls(width=w, height=h, data=arr)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data)

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def __len__(self) -> int:
        return int(self.data.size)


class PreprocessMode(str, Enum):
    NONE = "none"
    GRAYSCALE_THRESHOLD = "grayscale-threshold"
    ADAPTIVE_THRESHOLD = "adaptive-threshold"


class Language(str, Enum):
    ENGLISH = "eng"
    ARABIC = "ara"


class SegmentationMode(int, Enum):
    """Tesseract page segmentation modes used by the cascade."""

    UNIFORM_BLOCK = 6
    SPARSE_TEXT = 11


_LANGUAGE_ORDER = (Language.ENGLISH, Language.ARABIC)


def language_code(languages: FrozenSet[Language]) -> str:
    """Tesseract-style language string, e.g. ``eng+ara``."""
    return "+".join(lang.value for lang in _LANGUAGE_ORDER if lang in languages)


@dataclass(frozen=True)
class RecognitionConfig:
    languages: FrozenSet[Language]
    segmentation: SegmentationMode

    @property
    def language_code(self) -> str:
        return language_code(self.languages)

    def describe(self) -> str:
        return f"{self.language_code} / PSM {int(self.segmentation)}"

    def to_dict(self) -> Dict[str, Any]:
        return {"languages": self.language_code, "psm": int(self.segmentation)}


@dataclass(frozen=True)
class OcrAttemptResult:
    text: str
    config: RecognitionConfig


@dataclass(frozen=True)
class ParsedNutrition:
    """Fields read off a label. ``None`` means not found, never zero."""

    calories_per_serving: Optional[float] = None
    servings_per_container: Optional[float] = None
    serving_size_value: Optional[float] = None
    serving_size_unit: Optional[str] = None  # "ml" | "g"
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fats: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CascadeOutcome:
    text: str
    config: RecognitionConfig
    parsed: ParsedNutrition

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "config": self.config.to_dict(),
            "parsed": self.parsed.to_dict(),
        }
