import os
from dataclasses import dataclass
from typing import Dict, Optional

from .domain.models import PreprocessMode
from .logging import get_logger

log = get_logger("config")

DEFAULT_DPI = 300
DEFAULT_MAX_DIMENSION = 1200
DEFAULT_CROP_PERCENTAGE = 70
MIN_CROP_PERCENTAGE = 50
MAX_CROP_PERCENTAGE = 100
DEFAULT_PREPROCESS_MODE = PreprocessMode.GRAYSCALE_THRESHOLD


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir."""
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Minimal .env reader.

    - Reads key=value pairs, ignores comments (#/;) and blank lines.
    - Trims single/double quotes around the value.
    - Returns mapping; does not mutate environment.
    """
    env: Dict[str, str] = {}
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return env
    try:
        with open(path, "r", encoding="utf-8") as f:
            for raw in f:
                line = raw.strip()
                if not line or line.startswith("#") or line.startswith(";"):
                    continue
                if "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip()
                if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                    v = v[1:-1]
                env[k] = v.strip()
        log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    except OSError as e:
        log.warning(f"Failed reading .env: {e}")
    return env


def clamp_crop_percentage(value: float) -> float:
    return max(MIN_CROP_PERCENTAGE, min(MAX_CROP_PERCENTAGE, value))


def parse_preprocess_mode(value: Optional[str], fallback: PreprocessMode = DEFAULT_PREPROCESS_MODE) -> PreprocessMode:
    """Accept ``grayscale-threshold``, ``grayscale_threshold``, ``GRAYSCALE_THRESHOLD`` etc."""
    if not value:
        return fallback
    key = value.strip().lower().replace("_", "-")
    for mode in PreprocessMode:
        if mode.value == key:
            return mode
    log.warning(f"Unknown preprocess mode '{value}'; using {fallback.value}")
    return fallback


def _int_setting(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        log.warning(f"{name}={raw!r} is not an integer; using {default}")
        return default


@dataclass
class OcrSettings:
    tesseract_cmd: Optional[str] = None
    dpi: int = DEFAULT_DPI
    max_dimension: int = DEFAULT_MAX_DIMENSION
    crop_percentage: float = DEFAULT_CROP_PERCENTAGE
    preprocess_mode: PreprocessMode = DEFAULT_PREPROCESS_MODE


def load_ocr_settings(dotenv_dir: str) -> OcrSettings:
    """Build settings from the environment, falling back to the nearest .env."""
    env = _read_dotenv(dotenv_dir)

    def _get(key: str) -> Optional[str]:
        v = os.environ.get(key)
        if v is not None:
            return v
        return env.get(key)

    tesseract_cmd = (_get("TESSERACT_CMD") or "").strip() or None
    dpi = _int_setting("OCR_DPI", _get("OCR_DPI"), DEFAULT_DPI)
    max_dimension = _int_setting("OCR_MAX_DIMENSION", _get("OCR_MAX_DIMENSION"), DEFAULT_MAX_DIMENSION)
    crop = _int_setting("OCR_CROP_PERCENTAGE", _get("OCR_CROP_PERCENTAGE"), DEFAULT_CROP_PERCENTAGE)
    mode = parse_preprocess_mode(_get("OCR_PREPROCESS_MODE"))

    if dpi <= 0:
        log.warning(f"OCR_DPI must be positive; using {DEFAULT_DPI}")
        dpi = DEFAULT_DPI
    if max_dimension <= 0:
        log.warning(f"OCR_MAX_DIMENSION must be positive; using {DEFAULT_MAX_DIMENSION}")
        max_dimension = DEFAULT_MAX_DIMENSION

    settings = OcrSettings(
        tesseract_cmd=tesseract_cmd,
        dpi=dpi,
        max_dimension=max_dimension,
        crop_percentage=clamp_crop_percentage(crop),
        preprocess_mode=mode,
    )
    log.debug(f"OCR settings: {settings}")
    return settings
