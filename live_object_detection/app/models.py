"""Shared data models for live object detection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Detection:
    """Represents a single detected object.

    ``bbox`` is ``(x, y, width, height)`` in frame pixel coordinates.
    """

    bbox: Tuple[float, float, float, float]
    class_name: str
    score: float
    class_id: int = -1

    @property
    def x(self) -> float:
        return self.bbox[0]

    @property
    def y(self) -> float:
        return self.bbox[1]
