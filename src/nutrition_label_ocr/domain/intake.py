import math
from typing import Optional

from .models import ParsedNutrition


def _positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


def _round_half_up(value: float) -> int:
    # 22.5 -> 23, not banker's rounding
    return int(math.floor(value + 0.5))


def compute_total_calories(
    parsed: ParsedNutrition,
    *,
    consumed_servings: Optional[float] = None,
    consumed_quantity: Optional[float] = None,
) -> Optional[int]:
    """Calories eaten, from a label and what the user says they consumed.

    - A positive ``consumed_servings`` wins: calories-per-serving times servings.
    - Otherwise ``consumed_quantity`` (same unit as the serving size) is scaled
      against the serving size.
    Returns None when the label lacks calories or the inputs do not allow a total.
    """
    calories = parsed.calories_per_serving
    if not _positive(calories):
        return None

    if _positive(consumed_servings):
        return _round_half_up(calories * consumed_servings)

    serving = parsed.serving_size_value
    if _positive(consumed_quantity) and _positive(serving):
        return _round_half_up((consumed_quantity / serving) * calories)

    return None
