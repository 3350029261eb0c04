"""Camera stream lifecycle for live detection."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

import cv2
import numpy as np

from ..config.settings import AppSettings, CameraSource
from .overlay import OverlaySurface

LOGGER = logging.getLogger(__name__)


def open_video_source(source: CameraSource) -> cv2.VideoCapture:
    """Open a video capture object from an integer index or stream path."""

    capture = cv2.VideoCapture(source)
    if not capture.isOpened():
        capture.release()
        raise RuntimeError(f"Unable to open camera source: {source}")
    LOGGER.info("Camera source %s opened successfully", source)
    return capture


class CameraController:
    """Owns the capture stream and keeps the overlay surface sized to it.

    Args:
        settings: camera sources, facing preference and requested frame size.
        surface: overlay canvas resized to the native camera resolution.
    """

    def __init__(self, settings: AppSettings, surface: OverlaySurface) -> None:
        self.settings = settings
        self.surface = surface
        self.stream: Optional[cv2.VideoCapture] = None
        self.source: Optional[CameraSource] = None
        self.current_frame: Optional[np.ndarray] = None
        self.resolution: Optional[Tuple[int, int]] = None
        self._pending_read: Optional[asyncio.Future] = None

    @property
    def active(self) -> bool:
        return self.stream is not None

    def candidate_sources(self) -> List[CameraSource]:
        """Sources to try in order, rear-facing first when preferred."""

        sources: List[CameraSource] = []
        if self.settings.facing_mode == "environment" and self.settings.environment_camera is not None:
            sources.append(self.settings.environment_camera)
        if self.settings.camera_source not in sources:
            sources.append(self.settings.camera_source)
        return sources

    def _open(self) -> Tuple[cv2.VideoCapture, CameraSource]:
        for source in self.candidate_sources():
            try:
                capture = open_video_source(source)
            except RuntimeError as exc:
                LOGGER.warning("%s", exc)
                continue
            if self.settings.frame_width:
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.settings.frame_width)
            if self.settings.frame_height:
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.settings.frame_height)
            return capture, source
        raise RuntimeError("No camera source could be opened")

    async def activate(self) -> bool:
        if self.stream is not None:
            return True
        try:
            capture, source = await asyncio.to_thread(self._open)
        except Exception:
            LOGGER.exception("Error accessing camera")
            return False

        if self.stream is not None:
            LOGGER.info("Camera already active, releasing duplicate capture on %s", source)
            capture.release()
            return True
        self.stream = capture
        self.source = source
        width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        if width > 0 and height > 0:
            self._sync_resolution(width, height)
        return True

    async def read(self) -> Optional[np.ndarray]:
        stream = self.stream
        if stream is None:
            return None
        pending = asyncio.ensure_future(asyncio.to_thread(stream.read))
        self._pending_read = pending
        # The read outlives a cancelled caller; deactivate() releases only after it ends.
        success, frame = await asyncio.shield(pending)
        if stream is not self.stream:
            # Deactivated while the read was pending.
            return None
        if not success or frame is None:
            LOGGER.debug("Frame read failed on source %s", self.source)
            return None
        height, width = frame.shape[:2]
        self._sync_resolution(width, height)
        self.current_frame = frame
        return frame

    def _sync_resolution(self, width: int, height: int) -> None:
        if self.resolution == (width, height):
            return
        if self.resolution is not None:
            LOGGER.info("Camera resolution changed from %dx%d to %dx%d", *self.resolution, width, height)
        self.resolution = (width, height)
        self.surface.resize(width, height)

    def deactivate(self) -> None:
        if self.stream is None:
            return
        LOGGER.info("Releasing camera source %s", self.source)
        stream = self.stream
        pending = self._pending_read
        if pending is not None and not pending.done():
            LOGGER.debug("Deferring release until the pending frame read finishes")
            pending.add_done_callback(lambda _: stream.release())
        else:
            stream.release()
        self.stream = None
        self._pending_read = None
        self.source = None
        self.current_frame = None
        self.resolution = None
