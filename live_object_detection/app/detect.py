"""Entry point for live camera object detection."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from contextlib import suppress
from pathlib import Path
from typing import Coroutine, Optional, Set

import cv2
import numpy as np

from .config.settings import AppSettings, load_settings
from .services.camera import CameraController
from .services.detection_loop import DetectionLoop
from .services.model_loader import ModelLoader
from .services.overlay import OverlayRenderer, OverlaySurface
from .state import AppState, UIController
from .ui import draw_status_panel, placeholder_frame

LOGGER = logging.getLogger(__name__)

QUIT_KEYS = (ord("q"), 27)
CAMERA_KEY = ord("c")
DETECTION_KEY = ord("d")
IDLE_INTERVAL_S = 0.03


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Real-time object detection from a camera feed")
    parser.add_argument("--source", type=str, default=None, help="Camera index or stream path")
    parser.add_argument("--environment-camera", type=str, default=None, help="Rear-facing camera index or path, tried first")
    parser.add_argument("--facing", choices=["environment", "user"], default=None, help="Preferred camera facing")
    parser.add_argument("--model", type=str, default=None, help="Path to YOLO weights file")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold")
    parser.add_argument("--device", type=str, default=None, help="Inference device (cpu, cuda, cuda:0, auto)")
    parser.add_argument("--start-camera", action="store_true", help="Activate the camera at startup")
    parser.add_argument("--log-format", choices=["text", "json"], default=None, help="Logging format")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    return parser


def setup_logging(settings: AppSettings) -> None:
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.log_format == "json":
        formatter = logging.Formatter('{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}')
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=log_level, handlers=[handler], force=True)


def resolve_settings(args: argparse.Namespace) -> AppSettings:
    overrides = {}
    if args.source is not None:
        overrides["camera_source"] = args.source
    if args.environment_camera is not None:
        overrides["environment_camera"] = args.environment_camera
    if args.facing:
        overrides["facing_mode"] = args.facing
    if args.model:
        overrides["model_path"] = Path(args.model)
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.device:
        overrides["device"] = args.device
    if args.start_camera:
        overrides["start_camera"] = True
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.log_level:
        overrides["log_level"] = args.log_level

    return load_settings(**overrides)


class DisplayClock:
    """Signals each displayed frame so the detection loop can wait for the next refresh."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def tick(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        self._event.clear()
        await self._event.wait()


class LiveDetectionApp:
    """Wires the camera, model, detection loop and window together."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.state = AppState()
        self.surface = OverlaySurface()
        self.renderer = OverlayRenderer(
            self.surface,
            color=settings.overlay_color_bgr,
            line_width=settings.overlay_line_width,
            font_scale=settings.overlay_font_scale,
            label_offset=settings.label_offset,
            label_min_top=settings.label_min_top,
            label_fallback_y=settings.label_fallback_y,
        )
        self.camera = CameraController(settings, self.surface)
        self.loader = ModelLoader(settings)
        self.clock = DisplayClock()
        self.detection_loop = DetectionLoop(
            self.state,
            self.camera,
            self.loader,
            self.renderer,
            next_refresh=self.clock.wait,
        )
        self.controller = UIController(self.state, self.camera, self.loader, self.detection_loop)
        self._tasks: Set[asyncio.Task] = set()

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def handle_key(self, key: int) -> bool:
        """Dispatch a key press. Returns False when the app should quit."""

        if key in QUIT_KEYS:
            LOGGER.info("Quit signal received from keyboard")
            return False
        if key == CAMERA_KEY:
            self._spawn(self.controller.toggle_camera())
        elif key == DETECTION_KEY:
            self._spawn(self.controller.toggle_detection())
        return True

    async def next_display_frame(self) -> np.ndarray:
        placeholder_size = (self.settings.placeholder_width, self.settings.placeholder_height)
        if not self.state.camera_active:
            return placeholder_frame(placeholder_size)
        frame = await self.camera.read()
        if frame is None:
            frame = self.camera.current_frame
        if frame is None:
            return placeholder_frame(placeholder_size, "Starting camera...")
        return self.surface.composite(frame)

    async def run(self) -> int:
        LOGGER.info("Starting live object detection")
        load_task = asyncio.get_running_loop().create_task(self.loader.load())
        cv2.namedWindow(self.settings.window_name, cv2.WINDOW_NORMAL)
        if self.settings.start_camera:
            self._spawn(self.controller.toggle_camera())

        try:
            while True:
                self.controller.refresh_loading()
                frame = await self.next_display_frame()
                display = draw_status_panel(frame, self.state, self.controller.detection_control_enabled)
                cv2.imshow(self.settings.window_name, display)
                self.clock.tick()

                key = cv2.waitKey(1) & 0xFF
                if not self.handle_key(key):
                    break
                await asyncio.sleep(0 if self.state.camera_active else IDLE_INTERVAL_S)
        finally:
            await self.shutdown(load_task)
        LOGGER.info("Live object detection stopped")
        return 0

    async def shutdown(self, load_task: Optional[asyncio.Task] = None) -> None:
        self.state.detection_active = False
        await self.detection_loop.stop(cancel_in_flight=True)
        for task in list(self._tasks):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self.camera.deactivate()
        self.state.camera_active = False
        if load_task is not None and not load_task.done():
            load_task.cancel()
            with suppress(asyncio.CancelledError):
                await load_task
        self.loader.release()
        cv2.destroyAllWindows()


def run_detection(args: argparse.Namespace) -> int:
    settings = resolve_settings(args)
    setup_logging(settings)
    app = LiveDetectionApp(settings)
    return asyncio.run(app.run())


def main() -> None:
    parser = build_arg_parser()
    args = parser.parse_args()

    def handle_interrupt(signum: int, frame: Optional[object]) -> None:  # pragma: no cover - signal handling
        LOGGER.warning("Received interrupt signal (%d), shutting down", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_interrupt)
    sys.exit(run_detection(args))


if __name__ == "__main__":  # pragma: no cover
    main()
