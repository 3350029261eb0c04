"""Passive status indicators drawn over the displayed frame."""
from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from .state import AppState

GREEN = (94, 197, 34)
RED = (68, 68, 239)
YELLOW = (21, 204, 250)
WHITE = (255, 255, 255)
GREY = (175, 163, 156)
PANEL_BG = (39, 24, 17)

FONT = cv2.FONT_HERSHEY_SIMPLEX
KEY_HINT = "[c] camera  [d] detection  [q] quit"


def placeholder_frame(size: Tuple[int, int], text: str = "Camera inactive") -> np.ndarray:
    """Dark frame shown in place of the video while the camera is off."""

    width, height = size
    frame = np.full((height, width, 3), (55, 41, 31), dtype=np.uint8)
    (text_w, text_h), _ = cv2.getTextSize(text, FONT, 0.8, 2)
    origin = ((width - text_w) // 2, (height + text_h) // 2)
    cv2.putText(frame, text, origin, FONT, 0.8, GREY, 2, lineType=cv2.LINE_AA)
    return frame


def _indicator(frame: np.ndarray, origin: Tuple[int, int], name: str, active: bool) -> int:
    x, y = origin
    cv2.circle(frame, (x + 5, y - 5), 5, GREEN if active else RED, -1, lineType=cv2.LINE_AA)
    text = f"{name} {'Active' if active else 'Inactive'}"
    cv2.putText(frame, text, (x + 16, y), FONT, 0.5, WHITE, 1, lineType=cv2.LINE_AA)
    (text_w, _), _ = cv2.getTextSize(text, FONT, 0.5, 1)
    return x + 16 + text_w + 24


def draw_status_panel(frame: np.ndarray, state: AppState, detection_enabled: bool) -> np.ndarray:
    """Append a status strip below the frame and return the combined image."""

    labels = state.unique_labels()
    line_height = 22
    rows = 2 + (1 if state.model_loading else 0) + (1 + len(labels) if labels else 0)
    panel = np.full((rows * line_height + 12, frame.shape[1], 3), PANEL_BG, dtype=np.uint8)

    y = line_height
    x = _indicator(panel, (10, y), "Camera", state.camera_active)
    _indicator(panel, (x, y), "Detection", state.detection_active)

    y += line_height
    hint_color = WHITE if detection_enabled else GREY
    cv2.putText(panel, KEY_HINT, (10, y), FONT, 0.45, hint_color, 1, lineType=cv2.LINE_AA)

    if state.model_loading:
        y += line_height
        cv2.putText(panel, "Loading detection model...", (10, y), FONT, 0.5, YELLOW, 1, lineType=cv2.LINE_AA)

    if labels:
        y += line_height
        cv2.putText(panel, "Detected Objects:", (10, y), FONT, 0.5, WHITE, 1, lineType=cv2.LINE_AA)
        for label in labels:
            y += line_height
            cv2.putText(panel, f"- {label}", (22, y), FONT, 0.5, WHITE, 1, lineType=cv2.LINE_AA)

    return np.vstack([frame, panel])
