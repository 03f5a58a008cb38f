# pipeline/image_io.py
from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np

from .errors import InputError
from .models import PixelBuffer


def decode_image(data: bytes) -> PixelBuffer:
    """Decode encoded image bytes (JPEG, PNG, ...) into an RGB buffer."""
    if not data:
        raise InputError("Empty image data")

    buf = np.frombuffer(data, dtype=np.uint8)
    bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if bgr is None:
        raise InputError("Could not decode image data")

    return PixelBuffer.from_array(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))


def read_image(path: Path) -> tuple[PixelBuffer, bytes]:
    """Read and decode an image file; also returns the raw bytes for upload."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise InputError(f"Could not open image: {path}") from exc

    try:
        return decode_image(data), data
    except InputError as exc:
        raise InputError(f"Could not decode image: {path}") from exc
