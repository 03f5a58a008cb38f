# pipeline/synthetic.py
from __future__ import annotations

import random
from datetime import datetime, timezone

from ..config import ProcessingConfig
from .color import color_name, rgb_to_hex, rgb_to_hsl
from .models import (
    BBox,
    ColorInfo,
    DetectionResult,
    LogoRegion,
    PlateRegion,
    VehicleRegion,
    VehicleType,
)
from .orchestrator import is_ready_for_cloud
from .utils import new_detection_id


class SyntheticResultGenerator:
    """
    Fake detection results for demos and downstream (transport/UI) testing.

    Layout follows a typical rear shot: vehicle filling most of the frame,
    plate in the lower middle, logo above it. Boxes and confidences are
    jittered with a seeded RNG. Never used by DetectionPipeline.
    """

    def __init__(self, seed: int | None = None, config: ProcessingConfig | None = None):
        self.rng = random.Random(seed)
        self.config = config or ProcessingConfig()

    def _jitter(self, value: float, spread: float = 0.03) -> float:
        return value + self.rng.uniform(-spread, spread)

    def generate(self, width: int, height: int) -> DetectionResult:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid image size {width}x{height}")

        vbox = BBox(
            int(width * self._jitter(0.1)),
            int(height * self._jitter(0.15)),
            int(width * 0.8),
            int(height * 0.7),
        )
        pbox = BBox(
            int(width * self._jitter(0.3)),
            int(height * self._jitter(0.6)),
            max(1, int(width * 0.4)),
            max(1, int(height * 0.08)),
        )
        side = max(1, int(width * 0.16))
        lbox = BBox(int(width * self._jitter(0.42)), int(height * self._jitter(0.25)), side, side)

        vehicle = VehicleRegion(
            type=self.rng.choice((VehicleType.FRONT, VehicleType.REAR)),
            bbox=vbox,
            confidence=round(self.rng.uniform(0.6, 0.95), 3),
        )
        plate = PlateRegion(bbox=pbox, confidence=round(self.rng.uniform(0.4, 0.9), 3))
        logo = LogoRegion(bbox=lbox, confidence=round(self.rng.uniform(0.3, 0.85), 3))

        r, g, b = (self.rng.randrange(256) for _ in range(3))
        color = ColorInfo(
            dominant_hex=rgb_to_hex(r, g, b),
            name=color_name(*rgb_to_hsl(r, g, b)),
            confidence=round(self.rng.uniform(0.3, 0.9), 3),
            rgb=(r, g, b),
        )

        return DetectionResult(
            id=new_detection_id(),
            timestamp=datetime.now(timezone.utc),
            image_width=width,
            image_height=height,
            vehicle_region=vehicle,
            license_plate=plate,
            logo_region=logo,
            vehicle_color=color,
            processing_time_ms=round(self.rng.uniform(50.0, 250.0), 1),
            is_ready_for_cloud=is_ready_for_cloud(vehicle, plate, self.config),
        )
