"""Four-step OCR fallback: cheap English first, bilingual sparse text last.

Steps, in order:
  1. eng      / PSM 6  (uniform block)
  2. eng      / PSM 11 (sparse text)
  3. eng+ara  / PSM 6
  4. eng+ara  / PSM 11  (returned whatever it yields)

The cascade stops at the first attempt whose text parses into calories and a
serving size. Engine errors are not caught; they end the whole cascade.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional, Tuple

from ..domain.models import (
    CascadeOutcome,
    Language,
    OcrAttemptResult,
    PixelBuffer,
    RecognitionConfig,
    SegmentationMode,
)
from ..logging import get_logger
from ..parsing.nutrition import is_successful, parse
from .engine import DEFAULT_DPI, ProgressCallback, RecognitionEngine

LOG = get_logger("ocr-cascade")

MessageCallback = Callable[[str], None]

ENGLISH = frozenset({Language.ENGLISH})
ENGLISH_ARABIC = frozenset({Language.ENGLISH, Language.ARABIC})

CASCADE: Tuple[RecognitionConfig, ...] = (
    RecognitionConfig(ENGLISH, SegmentationMode.UNIFORM_BLOCK),
    RecognitionConfig(ENGLISH, SegmentationMode.SPARSE_TEXT),
    RecognitionConfig(ENGLISH_ARABIC, SegmentationMode.UNIFORM_BLOCK),
    RecognitionConfig(ENGLISH_ARABIC, SegmentationMode.SPARSE_TEXT),
)


class CascadeCancelled(RuntimeError):
    pass


def run_attempt(
    engine: RecognitionEngine,
    buffer: PixelBuffer,
    config: RecognitionConfig,
    *,
    dpi: int = DEFAULT_DPI,
    on_progress: Optional[ProgressCallback] = None,
) -> OcrAttemptResult:
    """Recognize ``buffer`` once under ``config`` in a fresh session."""
    session = engine.create_session(config.languages)
    try:
        session.configure(config.segmentation, dpi)
        text = session.recognize(buffer, on_progress)
    finally:
        session.dispose()
    return OcrAttemptResult(text=text or "", config=config)


def run_ocr_with_fallbacks(
    buffer: PixelBuffer,
    engine: RecognitionEngine,
    *,
    dpi: int = DEFAULT_DPI,
    on_progress: Optional[ProgressCallback] = None,
    on_message: Optional[MessageCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> CascadeOutcome:
    """Walk :data:`CASCADE` until an attempt parses successfully.

    The last step is terminal: its outcome is returned even when the parse is
    incomplete, so callers always receive a best-effort result.
    ``cancel_event`` is checked before every attempt; once set,
    :class:`CascadeCancelled` is raised instead of starting the next one.
    """
    last_step = len(CASCADE) - 1
    step = 0
    while True:
        config = CASCADE[step]
        if cancel_event is not None and cancel_event.is_set():
            LOG.info(f"Cascade cancelled before attempt #{step + 1}")
            raise CascadeCancelled(f"OCR cancelled before attempt #{step + 1}")

        message = f"OCR attempt #{step + 1}: {config.describe()}"
        LOG.info(message)
        if on_message:
            on_message(message)
        if on_progress:
            on_progress(0)

        attempt = run_attempt(engine, buffer, config, dpi=dpi, on_progress=on_progress)
        parsed = parse(attempt.text)
        ok = is_successful(parsed)
        LOG.info(f"Attempt #{step + 1} returned {len(attempt.text)} chars; parse {'succeeded' if ok else 'incomplete'}")

        if ok or step == last_step:
            if not ok:
                LOG.warning("All OCR attempts exhausted; returning final attempt for manual correction")
            return CascadeOutcome(text=attempt.text, config=config, parsed=parsed)
        step += 1
