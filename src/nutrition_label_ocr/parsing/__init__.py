from .nutrition import FIELD_PATTERNS, is_successful, normalize_unit, parse

__all__ = ["FIELD_PATTERNS", "is_successful", "normalize_unit", "parse"]
