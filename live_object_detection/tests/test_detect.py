from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import numpy as np
import pytest

from live_object_detection.app import detect
from live_object_detection.app.detect import DisplayClock, LiveDetectionApp, build_arg_parser, resolve_settings
from live_object_detection.app.state import AppState
from live_object_detection.app.ui import draw_status_panel, placeholder_frame


def test_resolve_settings_applies_cli_overrides() -> None:
    args = build_arg_parser().parse_args(
        ["--source", "1", "--environment-camera", "3", "--model", "weights/best.pt", "--conf", "0.6", "--start-camera"]
    )
    settings = resolve_settings(args)
    assert settings.camera_source == 1
    assert settings.environment_camera == 3
    assert settings.model_path == Path("weights/best.pt")
    assert settings.confidence_threshold == pytest.approx(0.6)
    assert settings.start_camera is True


def test_resolve_settings_defaults_untouched() -> None:
    settings = resolve_settings(build_arg_parser().parse_args([]))
    assert settings.camera_source == 0
    assert settings.log_format == "text"


@pytest.mark.asyncio
async def test_handle_key_dispatches_toggles(settings) -> None:
    app = LiveDetectionApp(settings)
    app.controller.toggle_camera = AsyncMock(return_value=True)
    app.controller.toggle_detection = AsyncMock(return_value=True)

    assert app.handle_key(ord("c")) is True
    assert app.handle_key(ord("d")) is True
    assert app.handle_key(ord("x")) is True
    await asyncio.gather(*app._tasks)

    app.controller.toggle_camera.assert_awaited_once()
    app.controller.toggle_detection.assert_awaited_once()
    assert app.handle_key(ord("q")) is False
    assert app.handle_key(27) is False


@pytest.mark.asyncio
async def test_display_frame_is_placeholder_while_camera_off(settings) -> None:
    app = LiveDetectionApp(settings)
    frame = await app.next_display_frame()
    assert frame.shape == (settings.placeholder_height, settings.placeholder_width, 3)


@pytest.mark.asyncio
async def test_display_frame_composites_overlay(settings, frame) -> None:
    app = LiveDetectionApp(settings)
    app.state.camera_active = True
    app.camera.read = AsyncMock(return_value=frame)
    app.surface.resize(frame.shape[1], frame.shape[0])
    app.surface.pixels[3, 4] = (0, 0, 255, 255)

    shown = await app.next_display_frame()

    assert tuple(shown[3, 4]) == (0, 0, 255)


@pytest.mark.asyncio
async def test_display_clock_releases_waiter_on_tick() -> None:
    clock = DisplayClock()
    waiter = asyncio.create_task(clock.wait())
    await asyncio.sleep(0)
    assert not waiter.done()

    clock.tick()
    await asyncio.wait_for(waiter, timeout=1)


@pytest.mark.asyncio
async def test_shutdown_releases_everything(monkeypatch, settings) -> None:
    destroyed = []
    monkeypatch.setattr(detect.cv2, "destroyAllWindows", lambda: destroyed.append(True))
    app = LiveDetectionApp(settings)
    app.state.camera_active = True
    app.state.detection_active = True
    app.loader.backend = "cpu"

    await app.shutdown()

    assert app.state.camera_active is False
    assert app.state.detection_active is False
    assert app.loader.backend is None
    assert destroyed == [True]


def test_status_panel_lists_unique_labels_and_loading_banner(frame) -> None:
    state = AppState(camera_active=True, model_loading=True, detected_labels=["cup", "cup", "book"])
    quiet = draw_status_panel(frame, AppState(model_loading=False), detection_enabled=False)
    busy = draw_status_panel(frame, state, detection_enabled=False)

    assert quiet.shape[1] == frame.shape[1]
    assert np.array_equal(busy[: frame.shape[0]], frame)
    # loading banner + heading + two unique labels
    assert busy.shape[0] - quiet.shape[0] == 4 * 22


def test_placeholder_frame_has_requested_size() -> None:
    image = placeholder_frame((320, 180))
    assert image.shape == (180, 320, 3)
    assert image.any()
