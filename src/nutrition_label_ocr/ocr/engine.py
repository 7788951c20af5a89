"""Text-recognition capability used by the cascade, plus the Tesseract adapter.

Any engine works as long as it can open a session for a language set, accept a
segmentation mode and DPI hint, recognize a buffer while reporting progress,
and release the session afterwards.
"""

from __future__ import annotations

from typing import Callable, FrozenSet, Optional

import pytesseract

from ..config import DEFAULT_DPI
from ..domain.models import Language, PixelBuffer, SegmentationMode, language_code
from ..logging import get_logger

LOG = get_logger("ocr-engine")

ProgressCallback = Callable[[int], None]


class RecognitionSession:
    """A loaded engine instance bound to one language set."""

    def configure(self, segmentation: SegmentationMode, dpi: int = DEFAULT_DPI) -> None:
        raise NotImplementedError

    def recognize(self, buffer: PixelBuffer, on_progress: Optional[ProgressCallback] = None) -> str:
        raise NotImplementedError

    def dispose(self) -> None:
        raise NotImplementedError


class RecognitionEngine:
    def create_session(self, languages: FrozenSet[Language]) -> RecognitionSession:
        raise NotImplementedError


class TesseractSession(RecognitionSession):
    def __init__(self, languages: FrozenSet[Language]) -> None:
        self.lang = language_code(languages)
        self.segmentation = SegmentationMode.UNIFORM_BLOCK
        self.dpi = DEFAULT_DPI
        self._disposed = False

    def _ensure_open(self) -> None:
        if self._disposed:
            raise RuntimeError(f"Tesseract session ({self.lang}) already disposed")

    def configure(self, segmentation: SegmentationMode, dpi: int = DEFAULT_DPI) -> None:
        self._ensure_open()
        self.segmentation = segmentation
        self.dpi = dpi

    @property
    def config_string(self) -> str:
        return f"--psm {int(self.segmentation)} --dpi {int(self.dpi)}"

    def recognize(self, buffer: PixelBuffer, on_progress: Optional[ProgressCallback] = None) -> str:
        self._ensure_open()
        # Tesseract gives no incremental progress; report start and finish.
        if on_progress:
            on_progress(0)
        LOG.debug(f"tesseract lang={self.lang} config='{self.config_string}' size={buffer.width}x{buffer.height}")
        text = pytesseract.image_to_string(
            buffer.to_image().convert("RGB"),
            lang=self.lang,
            config=self.config_string,
        )
        if on_progress:
            on_progress(100)
        return text or ""

    def dispose(self) -> None:
        self._disposed = True


class TesseractEngine(RecognitionEngine):
    """Recognition backed by the local ``tesseract`` binary via pytesseract."""

    def __init__(self, tesseract_cmd: Optional[str] = None) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
            LOG.info(f"Using Tesseract: {tesseract_cmd}")

    def create_session(self, languages: FrozenSet[Language]) -> RecognitionSession:
        return TesseractSession(languages)
