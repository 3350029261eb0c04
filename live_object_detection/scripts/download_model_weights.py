#!/usr/bin/env python3
"""Download the YOLOv8 checkpoint used by live object detection."""
from __future__ import annotations

import argparse
from pathlib import Path

import requests

RELEASE_URL = "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8{variant}.pt"
VARIANTS = ("n", "s", "m", "l", "x")
DEFAULT_TARGET_DIR = Path("models")


def weights_url(variant: str) -> str:
    if variant not in VARIANTS:
        raise ValueError(f"Unknown YOLOv8 variant: {variant}")
    return RELEASE_URL.format(variant=variant)


def download_weights(url: str, target: Path, session: requests.Session | None = None) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    response = (session or requests).get(url, timeout=60)
    response.raise_for_status()
    target.write_bytes(response.content)
    print(f"Model weights downloaded to {target}")
    return target


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download YOLOv8 weights")
    parser.add_argument("--variant", choices=VARIANTS, default="n", help="YOLOv8 variant; 'n' is the lightweight default")
    parser.add_argument("--url", type=str, default=None, help="Model weights URL override")
    parser.add_argument("--output", type=Path, default=None, help="Destination path")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    url = args.url or weights_url(args.variant)
    target = args.output or DEFAULT_TARGET_DIR / Path(url).name
    download_weights(url, target)


if __name__ == "__main__":
    main()
