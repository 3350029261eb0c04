"""Activation flags and the toggle handlers that drive them."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List

from .models import Detection

if TYPE_CHECKING:  # pragma: no cover
    from .services.camera import CameraController
    from .services.detection_loop import DetectionLoop
    from .services.model_loader import ModelLoader

LOGGER = logging.getLogger(__name__)


@dataclass
class AppState:
    camera_active: bool = False
    detection_active: bool = False
    model_loading: bool = True
    detected_labels: List[str] = field(default_factory=list)

    def unique_labels(self) -> List[str]:
        """Deduplicated labels in first-seen order."""

        return list(dict.fromkeys(self.detected_labels))

    def publish(self, detections: Iterable[Detection]) -> None:
        """Replace the label list with the labels of the latest result."""

        self.detected_labels = [detection.class_name for detection in detections]

    def clear_labels(self) -> None:
        self.detected_labels = []


class UIController:
    """Explicit state transitions for the camera and detection toggles.

    Turning the camera off also turns detection off. Turning detection on
    activates the camera first when needed. The detection toggle does nothing
    while the model is loading or after a failed load.
    """

    def __init__(
        self,
        state: AppState,
        camera: "CameraController",
        loader: "ModelLoader",
        detection_loop: "DetectionLoop",
    ) -> None:
        self.state = state
        self.camera = camera
        self.loader = loader
        self.detection_loop = detection_loop
        self._toggle_lock = asyncio.Lock()

    @property
    def detection_available(self) -> bool:
        return not self.state.model_loading and self.loader.model is not None

    @property
    def detection_control_enabled(self) -> bool:
        return not self.state.model_loading and self.state.camera_active

    def refresh_loading(self) -> None:
        self.state.model_loading = self.loader.loading

    async def toggle_camera(self) -> bool:
        # Toggles run one at a time; a press during activation waits for it.
        async with self._toggle_lock:
            if self.state.camera_active:
                await self._camera_off()
            else:
                await self._camera_on()
            return self.state.camera_active

    async def _camera_on(self) -> None:
        self.state.camera_active = True
        LOGGER.info("Activating camera")
        activated = await self.camera.activate()
        if not activated:
            self.state.camera_active = False
            self.state.detection_active = False
            await self.detection_loop.stop()
            self.state.clear_labels()

    async def _camera_off(self) -> None:
        LOGGER.info("Deactivating camera")
        self.state.camera_active = False
        self.state.detection_active = False
        await self.detection_loop.stop()
        self.state.clear_labels()
        self.camera.deactivate()

    async def toggle_detection(self) -> bool:
        async with self._toggle_lock:
            self.refresh_loading()
            if not self.detection_available:
                LOGGER.debug("Detection toggle ignored: model unavailable")
                return False

            if self.state.detection_active:
                self.state.detection_active = False
                LOGGER.info("Stopping detection")
                await self.detection_loop.stop()
                return True

            if not self.state.camera_active:
                await self._camera_on()
                if not self.state.camera_active:
                    return False

            self.state.detection_active = True
            LOGGER.info("Starting detection")
            self.detection_loop.start()
            return True
