import logging
import os
from typing import Optional

ROOT_NAME = "nutrition_label_ocr"

_FORMATTER = logging.Formatter(
    fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def _coerce_level(value: Optional[str]) -> int:
    if not value:
        return logging.INFO
    key = value.strip().upper()
    if key == "WARN":
        key = "WARNING"
    level = logging.getLevelName(key)
    return level if isinstance(level, int) else logging.INFO


def _prepared(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(_FORMATTER)
    return handler


def configure_root(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Attach handlers to the package logger once.

    ``level`` and ``log_file`` default to LOG_LEVEL and LOG_FILE. Module
    loggers from :func:`get_logger` hold no handlers of their own and
    propagate here. Later calls return the already configured logger.
    """
    root = logging.getLogger(ROOT_NAME)
    if getattr(root, "_nutrition_ocr_configured", False):
        return root

    lvl = _coerce_level(level if level is not None else os.environ.get("LOG_LEVEL"))
    root.setLevel(lvl)
    root.addHandler(_prepared(logging.StreamHandler(), lvl))

    path = log_file if log_file is not None else os.environ.get("LOG_FILE")
    if path:
        try:
            root.addHandler(_prepared(logging.FileHandler(path, encoding="utf-8"), lvl))
        except OSError as e:
            root.warning(f"LOG_FILE {path!r} could not be opened ({e}); continuing without file logging")

    root.propagate = False
    setattr(root, "_nutrition_ocr_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``nutrition_label_ocr.<name>``, configuring the package logger on first use."""
    configure_root()
    return logging.getLogger(f"{ROOT_NAME}.{name}")
