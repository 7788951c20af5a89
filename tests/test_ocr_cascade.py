from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from nutrition_label_ocr.domain.models import Language, PixelBuffer, SegmentationMode
from nutrition_label_ocr.ocr.cascade import CASCADE, CascadeCancelled, run_ocr_with_fallbacks
from nutrition_label_ocr.ocr.engine import RecognitionEngine, RecognitionSession
from nutrition_label_ocr.parsing.nutrition import is_successful

GOOD_TEXT = "Calories 120\nServing Size 250 ml\nProtein 8"

Key = Tuple[str, int]


class _StubSession(RecognitionSession):
    def __init__(self, engine: "_StubEngine", lang: str) -> None:
        self.engine = engine
        self.lang = lang
        self.psm: Optional[int] = None
        self.dpi: Optional[int] = None

    def configure(self, segmentation, dpi=300):
        self.psm = int(segmentation)
        self.dpi = dpi

    def recognize(self, buffer, on_progress=None):
        key = (self.lang, self.psm)
        self.engine.calls.append(key)
        if on_progress:
            on_progress(50)
        reply = self.engine.replies.get(key, "")
        if isinstance(reply, Exception):
            raise reply
        if on_progress:
            on_progress(100)
        return reply

    def dispose(self):
        self.engine.disposed.append((self.lang, self.psm))


class _StubEngine(RecognitionEngine):
    def __init__(self, replies: Dict[Key, object]) -> None:
        self.replies = replies
        self.calls: List[Key] = []
        self.disposed: List[Key] = []

    def create_session(self, languages):
        lang = "+".join(l.value for l in (Language.ENGLISH, Language.ARABIC) if l in languages)
        return _StubSession(self, lang)


def _buffer() -> PixelBuffer:
    return PixelBuffer(width=4, height=3, data=np.zeros((3, 4, 4), dtype=np.uint8))


def test_cascade_order_is_fixed():
    assert [(c.language_code, int(c.segmentation)) for c in CASCADE] == [
        ("eng", 6),
        ("eng", 11),
        ("eng+ara", 6),
        ("eng+ara", 11),
    ]
    assert CASCADE[0].segmentation is SegmentationMode.UNIFORM_BLOCK


def test_first_attempt_success_stops_immediately():
    engine = _StubEngine({("eng", 6): GOOD_TEXT})
    outcome = run_ocr_with_fallbacks(_buffer(), engine)
    assert engine.calls == [("eng", 6)]
    assert outcome.config == CASCADE[0]
    assert outcome.text == GOOD_TEXT


def test_stops_at_third_attempt():
    engine = _StubEngine({("eng", 6): "", ("eng", 11): "", ("eng+ara", 6): GOOD_TEXT})
    outcome = run_ocr_with_fallbacks(_buffer(), engine)

    assert engine.calls == [("eng", 6), ("eng", 11), ("eng+ara", 6)]
    assert outcome.config == CASCADE[2]
    assert outcome.text == GOOD_TEXT
    assert outcome.parsed.calories_per_serving == 120
    assert is_successful(outcome.parsed)


def test_exhausted_cascade_returns_last_attempt_without_error():
    engine = _StubEngine({("eng+ara", 11): "Protein 5"})
    outcome = run_ocr_with_fallbacks(_buffer(), engine)

    assert engine.calls == [("eng", 6), ("eng", 11), ("eng+ara", 6), ("eng+ara", 11)]
    assert outcome.config == CASCADE[3]
    assert outcome.text == "Protein 5"
    assert outcome.parsed.protein == 5
    assert not is_successful(outcome.parsed)


def test_engine_failure_propagates_and_stops():
    boom = RuntimeError("tesseract crashed")
    engine = _StubEngine({("eng", 11): boom, ("eng+ara", 6): GOOD_TEXT})

    with pytest.raises(RuntimeError) as excinfo:
        run_ocr_with_fallbacks(_buffer(), engine)

    assert excinfo.value is boom
    assert engine.calls == [("eng", 6), ("eng", 11)]
    # the failing attempt's session is still released
    assert engine.disposed == [("eng", 6), ("eng", 11)]


def test_every_session_disposed_and_configured_with_dpi():
    engine = _StubEngine({})
    run_ocr_with_fallbacks(_buffer(), engine, dpi=150)
    assert engine.disposed == engine.calls
    assert len(engine.disposed) == 4


def test_progress_reset_and_messages_per_attempt():
    engine = _StubEngine({("eng", 11): GOOD_TEXT})
    progress: List[int] = []
    messages: List[str] = []

    run_ocr_with_fallbacks(_buffer(), engine, on_progress=progress.append, on_message=messages.append)

    assert len(messages) == 2
    assert messages[0].startswith("OCR attempt #1")
    assert messages[1].startswith("OCR attempt #2")
    # progress restarts at 0 when attempt 2 begins
    assert progress == [0, 50, 100, 0, 50, 100]


def test_cancel_before_first_attempt():
    engine = _StubEngine({})
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(CascadeCancelled):
        run_ocr_with_fallbacks(_buffer(), engine, cancel_event=cancel)
    assert engine.calls == []


def test_cancel_between_attempts():
    cancel = threading.Event()

    class _CancellingEngine(_StubEngine):
        def create_session(self, languages):
            session = super().create_session(languages)
            cancel.set()  # user navigates away while attempt 1 is running
            return session

    engine = _CancellingEngine({})
    with pytest.raises(CascadeCancelled):
        run_ocr_with_fallbacks(_buffer(), engine, cancel_event=cancel)
    assert engine.calls == [("eng", 6)]
    assert engine.disposed == [("eng", 6)]
