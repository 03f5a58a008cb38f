# pipeline/logo_detector.py
from __future__ import annotations

import logging
import math
from typing import Callable, Optional

import numpy as np

from ..config import LogoParams
from .models import BBox, LogoRegion, VehicleRegion

log = logging.getLogger(__name__)


def disk_offsets(diameter: float) -> tuple[np.ndarray, np.ndarray]:
    """(dx, dy) offsets from a circle center that fall inside the circle."""
    half = diameter / 2.0
    steps = np.arange(-half, half, 1.0)
    dx, dy = np.meshgrid(steps, steps)
    inside = np.hypot(dx, dy) <= half
    return dx[inside], dy[inside]


def blob_score(field: np.ndarray, cx: float, cy: float, dx: np.ndarray, dy: np.ndarray) -> float | None:
    """Mean field value over the disk centered at (cx, cy); None if no pixel lands in the image."""
    H, W = field.shape[:2]
    px = np.floor(cx + dx).astype(np.intp)
    py = np.floor(cy + dy).astype(np.intp)
    ok = (px >= 0) & (py >= 0) & (px < W) & (py < H)
    if not ok.any():
        return None
    return float(field[py[ok], px[ok]].mean())


class LogoRegionDetector:
    """
    Circular blob-response scan on the Laplacian field.

    Emblems are compact high-curvature shapes, so the best logo candidate is
    the disk with the highest mean Laplacian response near the top-center of
    the vehicle (or of the image when there is no vehicle).
    """

    def __init__(self, params: LogoParams | None = None):
        self.params = params or LogoParams()

    def search_area(self, W: int, H: int, vehicle: Optional[VehicleRegion]) -> tuple[float, float, float]:
        """(center_x, center_y, radius) of the square search area."""
        p = self.params
        if vehicle is not None:
            b = vehicle.bbox
            return (
                b.x + b.width / 2.0,
                b.y + b.height * p.vehicle_center_y,
                b.width * p.search_radius,
            )
        return W / 2.0, H * p.fallback_center_y, W * p.search_radius

    def detect(
        self,
        laplacian: np.ndarray,
        vehicle: Optional[VehicleRegion] = None,
        checkpoint: Callable[[], None] | None = None,
    ) -> Optional[LogoRegion]:
        p = self.params
        H, W = laplacian.shape[:2]
        cx, cy, radius = self.search_area(W, H, vehicle)

        best_score = None
        best_bbox = None
        for frac in p.diameters:
            if checkpoint is not None:
                checkpoint()

            diameter = W * frac
            half = diameter / 2.0
            if math.floor(diameter) == 0:
                continue

            dx, dy = disk_offsets(diameter)
            step = diameter * p.step
            for y in np.arange(cy - radius, cy + radius, step):
                for x in np.arange(cx - radius, cx + radius, step):
                    if x < half or y < half or x > W - half or y > H - half:
                        continue

                    score = blob_score(laplacian, x, y, dx, dy)
                    if score is None:
                        continue
                    if best_score is None or score > best_score:
                        best_score = score
                        best_bbox = BBox(
                            int(math.floor(x - half)),
                            int(math.floor(y - half)),
                            int(math.floor(diameter)),
                            int(math.floor(diameter)),
                        )

        if best_score is None or best_score <= p.min_score:
            log.debug("no logo region (best score %s)", best_score)
            return None

        confidence = min(best_score * p.confidence_gain, p.max_confidence)
        log.debug("logo at %s score=%.3f", best_bbox, best_score)
        return LogoRegion(bbox=best_bbox, confidence=float(confidence))
