"""Shared fakes for the camera, model and detection seams."""
from __future__ import annotations

import threading
from typing import List, Optional, Sequence

import numpy as np
import pytest

from live_object_detection.app.config.settings import AppSettings
from live_object_detection.app.models import Detection


class FakeDetector:
    """Stand-in for the loaded model handle that records concurrent calls."""

    def __init__(self, results: Optional[Sequence[Sequence[Detection]]] = None, error: Optional[Exception] = None) -> None:
        self.results = [list(r) for r in (results or [[]])]
        self.error = error
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.gate: Optional[threading.Event] = None
        self._lock = threading.Lock()

    def detect(self, frame: np.ndarray) -> List[Detection]:
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                self.gate.wait(timeout=5)
            if self.error is not None:
                raise self.error
            index = min(self.calls - 1, len(self.results) - 1)
            return self.results[index]
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture()
def settings(tmp_path) -> AppSettings:
    return AppSettings(model_path=tmp_path / "yolov8n.pt", device="cpu")


@pytest.fixture()
def frame() -> np.ndarray:
    return np.zeros((120, 160, 3), dtype=np.uint8)


def make_detection(label: str, bbox=(10.0, 40.0, 30.0, 20.0), score: float = 0.9) -> Detection:
    return Detection(bbox=bbox, class_name=label, score=score)


@pytest.fixture()
def detection_factory():
    return make_detection


@pytest.fixture()
def detector_factory():
    return FakeDetector
