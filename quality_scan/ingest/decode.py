from __future__ import annotations

from pathlib import Path
from typing import Any

from quality_scan.errors import DecodeError


def decode_image(image_path: str | Path) -> Any:
    """Decode an image file into an RGB ``uint8`` array of shape (H, W, 3)."""

    import cv2

    source_path = Path(image_path)
    if not source_path.is_file():
        raise DecodeError(f"Image file not found: {source_path}")

    image_bgr = cv2.imread(str(source_path), cv2.IMREAD_COLOR)
    if image_bgr is None or image_bgr.size == 0:
        raise DecodeError(f"Unable to decode image: {source_path}")

    return cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)

