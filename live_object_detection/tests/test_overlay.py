from __future__ import annotations

import numpy as np
import pytest

from live_object_detection.app.models import Detection
from live_object_detection.app.services import overlay
from live_object_detection.app.services.overlay import (
    OverlayRenderer,
    OverlaySurface,
    format_label,
    label_origin,
)


def test_label_origin_above_box_when_room() -> None:
    detection = Detection(bbox=(12.0, 50.0, 20.0, 20.0), class_name="cup", score=0.5)
    assert label_origin(detection) == (12, 45)


@pytest.mark.parametrize("top", [10.0, 4.0, 0.0])
def test_label_origin_falls_back_near_surface_top(top: float) -> None:
    detection = Detection(bbox=(7.0, top, 20.0, 20.0), class_name="cup", score=0.5)
    assert label_origin(detection) == (7, 10)


def test_label_origin_just_below_threshold_boundary() -> None:
    detection = Detection(bbox=(0.0, 10.5, 5.0, 5.0), class_name="cup", score=0.5)
    assert label_origin(detection) == (0, 6)


@pytest.mark.parametrize(
    "score,expected",
    [(0.875, "person (88%)"), (0.125, "person (13%)"), (0.994, "person (99%)"), (1.0, "person (100%)")],
)
def test_format_label_rounds_to_whole_percent(score: float, expected: str) -> None:
    assert format_label(Detection(bbox=(0, 0, 1, 1), class_name="person", score=score)) == expected


def test_render_draws_one_rectangle_per_detection(monkeypatch) -> None:
    surface = OverlaySurface(100, 80)
    renderer = OverlayRenderer(surface)
    rectangles = []
    real_rectangle = overlay.cv2.rectangle

    def spy(canvas, pt1, pt2, color, thickness):
        rectangles.append((pt1, pt2))
        return real_rectangle(canvas, pt1, pt2, color, thickness)

    monkeypatch.setattr(overlay.cv2, "rectangle", spy)
    detections = [
        Detection(bbox=(10, 20, 30, 40), class_name="cat", score=0.7),
        Detection(bbox=(50, 5, 20, 10), class_name="dog", score=0.6),
    ]

    assert renderer.render(detections) == 2
    assert rectangles == [((10, 20), (40, 60)), ((50, 5), (70, 15))]
    assert tuple(surface.pixels[20, 10]) == (255, 255, 0, 255)


def test_render_clears_previous_drawing() -> None:
    surface = OverlaySurface(64, 64)
    renderer = OverlayRenderer(surface)
    renderer.render([Detection(bbox=(5, 20, 20, 20), class_name="cat", score=0.7)])
    assert not surface.is_blank()

    assert renderer.render([]) == 0
    assert surface.is_blank()


def test_render_leaves_box_interior_unfilled() -> None:
    surface = OverlaySurface(100, 100)
    OverlayRenderer(surface, line_width=2).render(
        [Detection(bbox=(20, 40, 50, 50), class_name="box", score=0.5)]
    )
    assert surface.pixels[65, 45, 3] == 0


def test_composite_blends_drawn_pixels_only() -> None:
    surface = OverlaySurface(4, 4)
    surface.pixels[1, 2] = (10, 20, 30, 255)
    frame = np.full((4, 4, 3), 200, dtype=np.uint8)

    output = surface.composite(frame)

    assert tuple(output[1, 2]) == (10, 20, 30)
    assert tuple(output[0, 0]) == (200, 200, 200)
    assert tuple(frame[1, 2]) == (200, 200, 200)


def test_composite_skips_mismatched_frame() -> None:
    surface = OverlaySurface(4, 4)
    surface.pixels[:] = 255
    frame = np.zeros((8, 8, 3), dtype=np.uint8)
    assert surface.composite(frame) is frame


def test_resize_replaces_canvas() -> None:
    surface = OverlaySurface()
    surface.resize(640, 480)
    assert surface.size == (640, 480)
    assert surface.pixels.shape == (480, 640, 4)
    assert surface.is_blank()
