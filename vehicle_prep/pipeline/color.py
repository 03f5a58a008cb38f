# pipeline/color.py
from __future__ import annotations

import logging
import math
from typing import Optional

import cv2
import numpy as np

from ..config import ColorParams
from .models import BBox, ColorInfo, ColorName, PixelBuffer, VehicleRegion

log = logging.getLogger(__name__)

# (upper bound inclusive, name), checked after red, which wraps around 0
HUE_BANDS = (
    (45.0, ColorName.ORANGE),
    (65.0, ColorName.YELLOW),
    (160.0, ColorName.GREEN),
    (200.0, ColorName.TEAL),
    (250.0, ColorName.BLUE),
    (290.0, ColorName.PURPLE),
)


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[float, float, float]:
    """Hue in degrees [0, 360), saturation and lightness in percent."""
    px = np.array([[[r, g, b]]], dtype=np.float32) / 255.0
    h, l, s = cv2.cvtColor(px, cv2.COLOR_RGB2HLS)[0, 0]
    # float32 noise would push exact boundary colors (S == 15, H == 20) across a rule
    return round(float(h), 3), round(float(s) * 100.0, 3), round(float(l) * 100.0, 3)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def color_name(h: float, s: float, l: float) -> ColorName:
    if l >= 85 and s <= 15:
        return ColorName.WHITE
    if l <= 15:
        return ColorName.BLACK
    if s <= 15 and 55 < l < 85:
        return ColorName.SILVER
    if s <= 15:
        return ColorName.GRAY

    if 0 <= h <= 20 or 340 <= h < 360:
        return ColorName.RED
    for upper, name in HUE_BANDS:
        if h <= upper:
            return name
    if 290 < h < 340:
        return ColorName.PINK
    return ColorName.UNKNOWN


class ColorClassifier:
    """
    Dominant color of the vehicle from a coarse RGB histogram.

    Pixels are bucketed per channel; the most populated bucket wins and its
    color is the mean of the pixels that fell into it, not the bucket corner.
    """

    def __init__(self, params: ColorParams | None = None):
        self.params = params or ColorParams()

    def sample_region(self, image: PixelBuffer, vehicle: Optional[VehicleRegion]) -> Optional[BBox]:
        W, H = image.width, image.height
        if vehicle is not None:
            return vehicle.bbox.clamp(W, H)

        fx, fy, fw, fh = self.params.fallback_crop
        crop = BBox(
            int(math.floor(W * fx)),
            int(math.floor(H * fy)),
            int(math.floor(W * fw)),
            int(math.floor(H * fh)),
        )
        if crop.width == 0 or crop.height == 0:
            return None
        return crop.clamp(W, H)

    def classify(self, image: PixelBuffer, vehicle: Optional[VehicleRegion] = None) -> Optional[ColorInfo]:
        region = self.sample_region(image, vehicle)
        if region is None:
            log.debug("empty color sample region")
            return None

        crop = image.pixels[region.y:region.y2, region.x:region.x2]
        pixels = crop.reshape(-1, 3).astype(np.int64)
        total = pixels.shape[0]

        levels = int(math.ceil(256 / self.params.bucket_size))
        q = pixels // self.params.bucket_size
        keys = (q[:, 0] * levels + q[:, 1]) * levels + q[:, 2]

        n_keys = levels ** 3
        counts = np.bincount(keys, minlength=n_keys)
        top = counts.max()

        # ties go to the bucket whose first pixel comes first in row-major order
        tied = np.flatnonzero(counts == top)
        if len(tied) > 1:
            first_seen = np.full(n_keys, total, dtype=np.int64)
            uniq, first_idx = np.unique(keys, return_index=True)
            first_seen[uniq] = first_idx
            winner = tied[np.argmin(first_seen[tied])]
        else:
            winner = tied[0]

        members = pixels[keys == winner]
        # round half up
        r, g, b = (int(v) for v in np.floor(members.mean(axis=0) + 0.5))

        h, s, l = rgb_to_hsl(r, g, b)
        name = color_name(h, s, l)
        confidence = float(top) / float(total)

        log.debug("color %s rgb=(%d,%d,%d) hsl=(%.1f,%.1f,%.1f) conf=%.3f",
                  name.value, r, g, b, h, s, l, confidence)
        return ColorInfo(
            dominant_hex=rgb_to_hex(r, g, b),
            name=name,
            confidence=confidence,
            rgb=(r, g, b),
        )
