"""Sequential per-frame detection loop."""
from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from ..models import Detection

if TYPE_CHECKING:  # pragma: no cover
    from ..state import AppState
    from .camera import CameraController
    from .model_loader import ModelLoader
    from .overlay import OverlayRenderer

LOGGER = logging.getLogger(__name__)

RefreshWaiter = Callable[[], Awaitable[object]]


async def _yield_once() -> None:
    await asyncio.sleep(0)


class DetectionLoop:
    """Runs one detection cycle at a time while camera, detection and model are all ready.

    The next cycle is scheduled only after the previous result has been rendered,
    so inference never overlaps and the loop runs at the achievable inference rate.
    """

    def __init__(
        self,
        app_state: "AppState",
        camera: "CameraController",
        loader: "ModelLoader",
        renderer: "OverlayRenderer",
        next_refresh: Optional[RefreshWaiter] = None,
    ) -> None:
        self.app_state = app_state
        self.camera = camera
        self.loader = loader
        self.renderer = renderer
        self.next_refresh = next_refresh or _yield_once
        self.in_flight = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> str:
        return "running" if self._task is not None and not self._task.done() else "idle"

    def can_run(self) -> bool:
        return (
            self.app_state.camera_active
            and self.app_state.detection_active
            and self.loader.model is not None
        )

    def start(self) -> bool:
        if not self.can_run():
            return False
        # A live task re-checks the conditions after its in-flight call, so it is reused.
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def stop(self, *, cancel_in_flight: bool = False) -> None:
        task = self._task
        if task is not None and not task.done() and (cancel_in_flight or not self.in_flight):
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self.renderer.clear()
        self.app_state.clear_labels()

    async def run_cycle(self) -> Optional[List[Detection]]:
        frame = self.camera.current_frame
        model = self.loader.model
        if frame is None or model is None:
            return None

        self.in_flight += 1
        try:
            detections = await asyncio.to_thread(model.detect, frame)
        finally:
            self.in_flight -= 1

        if not self.can_run():
            LOGGER.debug("Discarding detection result after loop exit")
            return None
        self.renderer.render(detections)
        self.app_state.publish(detections)
        return detections

    async def _run(self) -> None:
        LOGGER.info("Detection loop running")
        try:
            while self.can_run():
                await self.run_cycle()
                if not self.can_run():
                    break
                await self.next_refresh()
        except Exception:
            LOGGER.exception("Detection error; stopping detection")
            self.app_state.detection_active = False
            self.app_state.clear_labels()
            self.renderer.clear()
        finally:
            LOGGER.info("Detection loop idle")
