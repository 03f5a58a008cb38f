# pipeline/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Protocol

import numpy as np

from .errors import InputError


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded 3-channel RGB image, uint8, shape (H, W, 3)."""
    pixels: np.ndarray

    @classmethod
    def from_array(cls, image: np.ndarray) -> "PixelBuffer":
        """
        Validate an (H, W, 3) array. Float buffers with max <= 1 are read as
        0..1 and scaled; anything larger is taken to be 0..255 already.
        """
        if not isinstance(image, np.ndarray):
            raise InputError(f"Expected a numpy array, got {type(image).__name__}")
        if image.ndim != 3 or image.shape[2] != 3:
            raise InputError(f"Expected an (H, W, 3) RGB buffer, got shape {image.shape}")
        if image.shape[0] == 0 or image.shape[1] == 0:
            raise InputError("Image buffer has zero area")

        if image.dtype == np.uint8:
            pixels = image
        elif np.issubdtype(image.dtype, np.floating):
            if not np.isfinite(image).all():
                raise InputError("Image buffer contains NaN or infinite values")
            scale = 255.0 if image.max() <= 1.0 else 1.0
            pixels = np.clip(np.floor(image * scale + 0.5), 0, 255).astype(np.uint8)
        elif np.issubdtype(image.dtype, np.integer):
            pixels = np.clip(image, 0, 255).astype(np.uint8)
        else:
            raise InputError(f"Unsupported pixel dtype: {image.dtype}")

        return cls(np.ascontiguousarray(pixels))

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])


@dataclass(frozen=True)
class BBox:
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def clamp(self, w: int, h: int) -> Optional["BBox"]:
        """Part of the box inside a w x h image, or None if nothing is left."""
        x1 = max(0, self.x)
        y1 = max(0, self.y)
        x2 = min(w, self.x2)
        y2 = min(h, self.y2)
        if x2 <= x1 or y2 <= y1:
            return None
        return BBox(x1, y1, x2 - x1, y2 - y1)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class VehicleType(str, Enum):
    FRONT = "front"
    REAR = "rear"


class ColorName(str, Enum):
    WHITE = "White"
    BLACK = "Black"
    SILVER = "Silver"
    GRAY = "Gray"
    RED = "Red"
    ORANGE = "Orange"
    YELLOW = "Yellow"
    GREEN = "Green"
    TEAL = "Teal"
    BLUE = "Blue"
    PURPLE = "Purple"
    PINK = "Pink"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class VehicleRegion:
    type: VehicleType
    bbox: BBox
    confidence: float


@dataclass(frozen=True)
class PlateRegion:
    bbox: BBox
    confidence: float


@dataclass(frozen=True)
class LogoRegion:
    bbox: BBox
    confidence: float


@dataclass(frozen=True)
class ColorInfo:
    dominant_hex: str  # "#rrggbb"
    name: ColorName
    confidence: float
    rgb: tuple[int, int, int]

    def to_dict(self) -> dict:
        r, g, b = self.rgb
        return {
            "dominantHex": self.dominant_hex,
            "name": self.name.value,
            "confidence": self.confidence,
            "rgb": {"r": r, "g": g, "b": b},
        }


@dataclass(frozen=True)
class DetectionResult:
    """Everything found in one image. Built once by the pipeline."""
    id: str
    timestamp: datetime
    image_width: int
    image_height: int
    vehicle_region: Optional[VehicleRegion]
    license_plate: Optional[PlateRegion]
    logo_region: Optional[LogoRegion]
    vehicle_color: Optional[ColorInfo]
    processing_time_ms: float
    is_ready_for_cloud: bool


class RegionDetector(Protocol):
    """Field-based region detector (vehicle-hinted plate/logo scans)."""
    def detect(
        self,
        field: np.ndarray,
        vehicle: Optional[VehicleRegion] = None,
        checkpoint: Optional[Callable[[], None]] = None,
    ) -> Optional[PlateRegion | LogoRegion]:
        ...
