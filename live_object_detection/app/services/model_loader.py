"""YOLO model loading and inference wrapper."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
import torch

try:  # pragma: no cover - import guarded for environments without ultralytics
    from ultralytics import YOLO
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "ultralytics package is required for object detection. Install the project "
        "via `pip install -e .` before running live-detect."
    ) from exc

from ..config.settings import AppSettings
from ..models import Detection

LOGGER = logging.getLogger(__name__)


class ObjectDetector:
    """Encapsulates YOLO inference for a single camera frame."""

    def __init__(self, model_path: Path, confidence: float, iou: float, device: str) -> None:
        self.model_path = model_path
        self.confidence = confidence
        self.iou = iou
        self.device = device
        LOGGER.info("Loading YOLO model from %s", model_path)
        self._model = YOLO(str(model_path))
        self._class_map = self._model.names

    def detect(self, frame: Optional[np.ndarray]) -> List[Detection]:
        """Run inference on a frame and return detections as (x, y, w, h) boxes."""

        if frame is None:
            raise RuntimeError("No frame available for detection")
        results = self._model(
            frame,
            verbose=False,
            conf=self.confidence,
            iou=self.iou,
            device=self.device,
        )
        detections: List[Detection] = []
        for result in results:
            boxes = result.boxes
            if boxes is None:
                continue
            for box in boxes:
                class_id = int(box.cls.item())
                class_name = self._class_map.get(class_id, str(class_id))
                x1, y1, x2, y2 = box.xyxy.cpu().numpy().flatten().tolist()
                detections.append(
                    Detection(
                        bbox=(x1, y1, x2 - x1, y2 - y1),
                        class_name=class_name,
                        score=float(box.conf.item()),
                        class_id=class_id,
                    )
                )
        LOGGER.debug("Detected %d objects", len(detections))
        return detections


class ModelLoader:
    """Prepares the inference backend and loads the detector once."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.loading = True
        self.model: Optional[ObjectDetector] = None
        self.backend: Optional[str] = None
        self._finished = False

    def prepare_backend(self) -> str:
        requested = self.settings.device.lower()
        if requested != "auto":
            return requested
        return "cuda" if torch.cuda.is_available() else "cpu"

    def resolve_model_path(self) -> Path:
        """Return the local weights file, or the bare asset name for Ultralytics to fetch."""

        path = self.settings.model_path
        if path.exists():
            return path
        LOGGER.warning("Weights not found at %s, requesting published asset %s", path, path.name)
        return Path(path.name)

    async def load(self) -> Optional[ObjectDetector]:
        if self._finished:
            return self.model

        self.loading = True
        try:
            self.backend = await asyncio.to_thread(self.prepare_backend)
            LOGGER.info("Inference backend ready: %s", self.backend)
            self.model = await asyncio.to_thread(
                ObjectDetector,
                self.resolve_model_path(),
                self.settings.confidence_threshold,
                self.settings.iou_threshold,
                self.backend,
            )
            LOGGER.info("Detection model loaded successfully")
        except Exception:
            LOGGER.exception("Error loading detection model; detection will stay unavailable")
            self.model = None
        finally:
            self.loading = False
            self._finished = True
        return self.model

    def release(self) -> None:
        if self.backend is None:
            return
        self.model = None
        if self.backend.startswith("cuda") and torch.cuda.is_available():
            torch.cuda.empty_cache()
        LOGGER.info("Released inference backend %s", self.backend)
        self.backend = None
