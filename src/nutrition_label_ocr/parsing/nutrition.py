"""Regex extraction of nutrition facts from OCR text (English and Arabic labels)."""

from __future__ import annotations

import re
from typing import Dict, Optional, Pattern, Sequence, Tuple

from ..domain.models import ParsedNutrition
from ..logging import get_logger

LOG = get_logger("parsing-nutrition")

_NUM = r"([0-9]+(?:\.[0-9]+)?)"
_SEP = r"\s*[:\-]?\s*"


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Latin patterns first, Arabic after. The first pattern that matches wins.
FIELD_PATTERNS: Dict[str, Tuple[Pattern[str], ...]] = {
    "calories_per_serving": _compile(
        r"Calories\s*([0-9]{1,4})",
        r"Calor[a-z]*\s*([0-9]{1,4})",
        r"السعرات(?:\s*الحرارية)?\s*([0-9]{1,4})",
    ),
    "servings_per_container": _compile(
        rf"servings?\s*per\s*container{_SEP}{_NUM}",
        rf"عدد\s*الحصص\s*(?:في\s*العبوة)?{_SEP}{_NUM}",
    ),
    "serving_size": _compile(
        rf"Serving\s*Size{_SEP}{_NUM}\s*(ml|g|gm|grams)",
        rf"حجم\s*الحصة{_SEP}{_NUM}\s*(مل|ml|جم|g)",
    ),
    "protein": _compile(
        rf"Protein\s*{_NUM}",
        rf"بروتين\s*{_NUM}",
    ),
    "carbs": _compile(
        rf"Carbohydrates?\s*{_NUM}",
        rf"الكربوهيدرات\s*{_NUM}",
    ),
    "fats": _compile(
        rf"Total\s*Fat\s*{_NUM}",
        rf"الدهون\s*الكلية\s*{_NUM}",
    ),
}

_ML_MARKERS = ("ml", "مل")


def _first_match(text: str, patterns: Sequence[Pattern[str]]) -> Optional[re.Match]:
    for pattern in patterns:
        m = pattern.search(text)
        if m:
            return m
    return None


def _number(text: str, field: str) -> Optional[float]:
    m = _first_match(text, FIELD_PATTERNS[field])
    if not m:
        return None
    return float(m.group(1))


def normalize_unit(token: str) -> str:
    """Map a captured serving-size unit to ``ml`` or ``g``."""
    t = token.lower()
    if any(marker in t for marker in _ML_MARKERS):
        return "ml"
    return "g"


def parse(text: str) -> ParsedNutrition:
    """Read the seven label fields from ``text``; unmatched fields stay None."""
    text = text or ""

    serving_value: Optional[float] = None
    serving_unit: Optional[str] = None
    m = _first_match(text, FIELD_PATTERNS["serving_size"])
    if m:
        serving_value = float(m.group(1))
        serving_unit = normalize_unit(m.group(2))

    parsed = ParsedNutrition(
        calories_per_serving=_number(text, "calories_per_serving"),
        servings_per_container=_number(text, "servings_per_container"),
        serving_size_value=serving_value,
        serving_size_unit=serving_unit,
        protein=_number(text, "protein"),
        carbs=_number(text, "carbs"),
        fats=_number(text, "fats"),
    )
    LOG.debug(f"Parsed {len(text)} chars -> {parsed}")
    return parsed


def is_successful(parsed: ParsedNutrition) -> bool:
    """True once calories and serving size are known; macros are optional."""
    return parsed.calories_per_serving is not None and parsed.serving_size_value is not None
