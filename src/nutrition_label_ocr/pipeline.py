"""End-to-end label scan: crop, downscale, binarize, then the OCR cascade."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .config import (
    DEFAULT_CROP_PERCENTAGE,
    DEFAULT_MAX_DIMENSION,
    DEFAULT_PREPROCESS_MODE,
    clamp_crop_percentage,
)
from .domain.models import CascadeOutcome, PixelBuffer, PreprocessMode
from .imaging.transforms import crop, downscale, preprocess
from .logging import get_logger
from .ocr.cascade import MessageCallback, run_ocr_with_fallbacks
from .ocr.engine import DEFAULT_DPI, ProgressCallback, RecognitionEngine

LOG = get_logger("pipeline")


def prepare_image(
    buffer: PixelBuffer,
    *,
    crop_percentage: float = DEFAULT_CROP_PERCENTAGE,
    mode: PreprocessMode = DEFAULT_PREPROCESS_MODE,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
) -> PixelBuffer:
    """Apply the transform stages in order and return the buffer fed to OCR."""
    cropped = crop(buffer, clamp_crop_percentage(crop_percentage))
    scaled = downscale(cropped, max_dimension)
    processed = preprocess(scaled, mode)
    LOG.info(
        f"Prepared image {buffer.width}x{buffer.height} -> {processed.width}x{processed.height} "
        f"(crop={crop_percentage}%, max={max_dimension}, mode={mode.value})"
    )
    return processed


def scan_label(
    buffer: PixelBuffer,
    engine: RecognitionEngine,
    *,
    crop_percentage: float = DEFAULT_CROP_PERCENTAGE,
    mode: PreprocessMode = DEFAULT_PREPROCESS_MODE,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    dpi: int = DEFAULT_DPI,
    on_progress: Optional[ProgressCallback] = None,
    on_message: Optional[MessageCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> CascadeOutcome:
    t0 = time.perf_counter()
    processed = prepare_image(
        buffer,
        crop_percentage=crop_percentage,
        mode=mode,
        max_dimension=max_dimension,
    )
    outcome = run_ocr_with_fallbacks(
        processed,
        engine,
        dpi=dpi,
        on_progress=on_progress,
        on_message=on_message,
        cancel_event=cancel_event,
    )
    LOG.info(f"Label scan finished with {outcome.config.describe()} in {time.perf_counter() - t0:.2f}s")
    return outcome
