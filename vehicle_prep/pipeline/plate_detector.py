# pipeline/plate_detector.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from ..config import PlateParams
from .edges import box_sum, window_sums
from .models import BBox, PlateRegion, VehicleRegion

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlateCandidate:
    bbox: BBox
    edge_density: float
    strong_edge_ratio: float
    score: float


@dataclass(frozen=True)
class SearchBounds:
    x0: float
    y0: float
    x1: float
    y1: float


class PlateRegionDetector:
    """
    Multi-scale sliding window over the gradient field.

    A plate is a small wide rectangle with lots of strong edges (characters
    and the plate border), so each window is scored on its mean edge value
    and on the share of pixels above strong_edge.
    """

    def __init__(self, params: PlateParams | None = None):
        self.params = params or PlateParams()

    def search_bounds(self, W: int, H: int, vehicle: Optional[VehicleRegion]) -> SearchBounds:
        p = self.params
        if vehicle is not None:
            b = vehicle.bbox
            return SearchBounds(
                x0=float(b.x),
                y0=b.y + b.height * p.vehicle_offset,
                x1=float(min(b.x2, W)),
                y1=float(min(b.y2, H)),
            )
        return SearchBounds(0.0, float(math.floor(H * p.fallback_top)), float(W), float(H))

    def candidates(
        self,
        gradient: np.ndarray,
        vehicle: Optional[VehicleRegion] = None,
        checkpoint: Callable[[], None] | None = None,
    ) -> list[PlateCandidate]:
        """All accepted windows, best first (stable: size, then y, then x)."""
        p = self.params
        H, W = gradient.shape[:2]
        bounds = self.search_bounds(W, H, vehicle)

        sum_table = window_sums(gradient)
        strong_table = window_sums(gradient > p.strong_edge)

        found: list[PlateCandidate] = []
        for w_frac, h_frac in p.window_sizes:
            if checkpoint is not None:
                checkpoint()

            win_w = W * w_frac
            win_h = W * h_frac
            cols = math.ceil(win_w)
            rows = math.ceil(win_h)
            if math.floor(win_w) == 0 or math.floor(win_h) == 0:
                continue

            n_pixels = float(rows * cols)
            for y in np.arange(bounds.y0, bounds.y1 - win_h, win_h * p.step_y):
                y0 = int(math.floor(y))
                for x in np.arange(bounds.x0, bounds.x1 - win_w, win_w * p.step_x):
                    x0 = int(math.floor(x))

                    density = box_sum(sum_table, x0, y0, x0 + cols, y0 + rows) / n_pixels
                    ratio = box_sum(strong_table, x0, y0, x0 + cols, y0 + rows) / n_pixels
                    if density <= p.min_edge_density or ratio <= p.min_strong_ratio:
                        continue

                    score = p.density_weight * density + p.ratio_weight * ratio
                    found.append(PlateCandidate(
                        bbox=BBox(x0, y0, int(math.floor(win_w)), int(math.floor(win_h))),
                        edge_density=density,
                        strong_edge_ratio=ratio,
                        score=score,
                    ))

        # sorted() is stable, so equal scores keep scan order
        return sorted(found, key=lambda c: c.score, reverse=True)

    def detect(
        self,
        gradient: np.ndarray,
        vehicle: Optional[VehicleRegion] = None,
        checkpoint: Callable[[], None] | None = None,
    ) -> Optional[PlateRegion]:
        ranked = self.candidates(gradient, vehicle, checkpoint)
        if not ranked:
            log.debug("no plate candidate")
            return None

        best = ranked[0]
        confidence = min(best.score * self.params.confidence_gain, self.params.max_confidence)
        log.debug("plate at %s score=%.3f (%d candidates)", best.bbox, best.score, len(ranked))
        return PlateRegion(bbox=best.bbox, confidence=float(confidence))
