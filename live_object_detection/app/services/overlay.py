"""Transparent overlay surface and bounding-box renderer."""
from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence, Tuple

import cv2
import numpy as np

from ..models import Detection

LOGGER = logging.getLogger(__name__)

Color = Tuple[int, int, int]


class OverlaySurface:
    """BGRA canvas aligned pixel-for-pixel with the camera frame."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    @property
    def size(self) -> Tuple[int, int]:
        height, width = self.pixels.shape[:2]
        return width, height

    def resize(self, width: int, height: int) -> None:
        if (width, height) == self.size:
            return
        LOGGER.info("Resizing overlay surface to %dx%d", width, height)
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self) -> None:
        self.pixels[:] = 0

    def is_blank(self) -> bool:
        return not self.pixels[..., 3].any()

    def composite(self, frame: np.ndarray) -> np.ndarray:
        """Return a copy of ``frame`` with the drawn overlay pixels on top."""

        if frame.shape[:2] != self.pixels.shape[:2]:
            LOGGER.debug("Overlay size %s does not match frame %s", self.size, frame.shape[1::-1])
            return frame
        output = frame.copy()
        alpha = self.pixels[..., 3:4].astype(np.float32) / 255.0
        blended = self.pixels[..., :3].astype(np.float32) * alpha + output.astype(np.float32) * (1.0 - alpha)
        output[:] = blended.astype(np.uint8)
        return output


def format_label(detection: Detection) -> str:
    """Return ``"<class> (<pct>%)"`` with the score rounded half up to a whole percent."""

    percent = int(math.floor(detection.score * 100 + 0.5))
    return f"{detection.class_name} ({percent}%)"


def label_origin(
    detection: Detection,
    *,
    offset: int = 5,
    min_top: int = 10,
    fallback_y: int = 10,
) -> Tuple[int, int]:
    """Baseline position for a label: just above the box, or pinned near the top edge."""

    x, y = detection.x, detection.y
    label_y = y - offset if y > min_top else fallback_y
    return int(round(x)), int(round(label_y))


class OverlayRenderer:
    """Draws detection boxes and labels onto an :class:`OverlaySurface`."""

    def __init__(
        self,
        surface: OverlaySurface,
        color: Sequence[int] = (255, 255, 0),
        line_width: int = 2,
        font_scale: float = 0.5,
        *,
        label_offset: int = 5,
        label_min_top: int = 10,
        label_fallback_y: int = 10,
    ) -> None:
        self.surface = surface
        self.color: Tuple[int, int, int, int] = (*(int(c) for c in color), 255)
        self.line_width = line_width
        self.font_scale = font_scale
        self.label_offset = label_offset
        self.label_min_top = label_min_top
        self.label_fallback_y = label_fallback_y

    def render(self, detections: Iterable[Detection]) -> int:
        """Clear the surface and draw every detection. Returns the number drawn."""

        self.surface.clear()
        canvas = self.surface.pixels
        drawn = 0
        for detection in detections:
            x, y, width, height = (int(round(v)) for v in detection.bbox)
            cv2.rectangle(canvas, (x, y), (x + width, y + height), self.color, self.line_width)
            cv2.putText(
                canvas,
                format_label(detection),
                label_origin(
                    detection,
                    offset=self.label_offset,
                    min_top=self.label_min_top,
                    fallback_y=self.label_fallback_y,
                ),
                cv2.FONT_HERSHEY_SIMPLEX,
                self.font_scale,
                self.color,
                1,
                lineType=cv2.LINE_AA,
            )
            drawn += 1
        return drawn

    def clear(self) -> None:
        self.surface.clear()
