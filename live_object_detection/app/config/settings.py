"""Configuration utilities for live object detection."""
from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CameraSource = Union[int, str]


class AppSettings(BaseSettings):
    """Application configuration sourced from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="LIVE_DETECT_",
        case_sensitive=False,
        protected_namespaces=(),
    )

    model_path: Path = Field(default=Path("models/yolov8n.pt"), description="YOLO weights path")
    confidence_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    iou_threshold: float = Field(default=0.45, ge=0.0, le=1.0)
    device: str = Field(default="auto", description="Inference device, or 'auto' to pick one.")
    camera_source: CameraSource = Field(default=0, description="Default camera index or stream path.")
    environment_camera: Optional[CameraSource] = Field(
        default=None,
        description="Rear/environment-facing camera, tried first when facing_mode is 'environment'.",
    )
    facing_mode: Literal["environment", "user"] = Field(default="environment")
    frame_width: Optional[int] = Field(default=None, gt=0, description="Requested capture width.")
    frame_height: Optional[int] = Field(default=None, gt=0, description="Requested capture height.")
    placeholder_width: int = Field(default=640, gt=0)
    placeholder_height: int = Field(default=360, gt=0)
    window_name: str = Field(default="Object Detection")
    start_camera: bool = Field(default=False, description="Activate the camera at startup.")
    overlay_color_bgr: List[int] = Field(default_factory=lambda: [255, 255, 0])
    overlay_line_width: int = Field(default=2, ge=1)
    overlay_font_scale: float = Field(default=0.5, gt=0.0)
    label_offset: int = Field(default=5, ge=0)
    label_min_top: int = Field(default=10, ge=0)
    label_fallback_y: int = Field(default=10, ge=0)
    log_format: Literal["text", "json"] = Field(default="text")
    log_level: str = Field(default="INFO")

    @field_validator("model_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Union[str, Path]) -> Path:
        return Path(value).expanduser()

    @field_validator("camera_source", "environment_camera", mode="before")
    @classmethod
    def _coerce_camera(cls, value: Optional[CameraSource]) -> Optional[CameraSource]:
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return value

    @field_validator("overlay_color_bgr")
    @classmethod
    def _check_color(cls, value: List[int]) -> List[int]:
        if len(value) != 3 or any(not 0 <= channel <= 255 for channel in value):
            raise ValueError("overlay_color_bgr must hold three channels in 0..255")
        return value


def load_settings(**overrides: object) -> AppSettings:
    """Return application settings, applying optional overrides."""

    return AppSettings(**overrides)
