# pipeline/vehicle_detector.py
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..config import VehicleParams
from .edges import box_sum, window_sums
from .models import BBox, VehicleRegion, VehicleType

log = logging.getLogger(__name__)


class VehicleRegionDetector:
    """
    Coarse grid search for the densest-edge block of the image.

    The image is cut into grid_size x grid_size cells and every
    window_cells x window_cells block of cells is scored by the fraction of
    its pixels above edge_threshold. Greedy and global: the first block
    with the highest density wins, overlaps are not suppressed.
    """

    def __init__(self, params: VehicleParams | None = None):
        self.params = params or VehicleParams()

    def detect(self, gradient: np.ndarray) -> Optional[VehicleRegion]:
        p = self.params
        H, W = gradient.shape[:2]

        cell_w = W // p.grid_size
        cell_h = H // p.grid_size
        if cell_w == 0 or cell_h == 0:
            log.debug("image %dx%d too small for a %d-cell grid", W, H, p.grid_size)
            return None

        region_w = cell_w * p.window_cells
        region_h = cell_h * p.window_cells
        area = float(region_w * region_h)

        table = window_sums(gradient > p.edge_threshold)

        best: BBox | None = None
        max_density = 0.0
        positions = p.grid_size - p.window_cells + 1
        for gy in range(positions):
            for gx in range(positions):
                x0 = gx * cell_w
                y0 = gy * cell_h
                density = box_sum(table, x0, y0, x0 + region_w, y0 + region_h) / area
                if density > max_density:
                    max_density = density
                    best = BBox(x0, y0, region_w, region_h)

        if best is None or max_density <= p.min_density:
            log.debug("no vehicle region (max density %.3f)", max_density)
            return None

        center_y = best.y + best.height / 2.0
        vtype = VehicleType.REAR if center_y > H * 0.5 else VehicleType.FRONT
        confidence = min(max_density * p.confidence_gain, p.max_confidence)

        log.debug("vehicle %s at %s density=%.3f", vtype.value, best, max_density)
        return VehicleRegion(type=vtype, bbox=best, confidence=float(confidence))
