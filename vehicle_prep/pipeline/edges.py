# pipeline/edges.py
from __future__ import annotations

from functools import cached_property

import cv2
import numpy as np

from .models import PixelBuffer


def normalize_by_max(field: np.ndarray) -> np.ndarray:
    """Scale a non-negative field to 0..1. A field whose max is 0 stays all-zero."""
    peak = float(field.max()) if field.size else 0.0
    if peak <= 0.0:
        return np.zeros_like(field, dtype=np.float32)
    return (field / peak).astype(np.float32)


def to_gray(pixels: np.ndarray) -> np.ndarray:
    """Unweighted channel mean (not the BT.601 luma cv2.cvtColor would give)."""
    return pixels.astype(np.float32).mean(axis=2)


class EdgeMap:
    """
    Gradient and Laplacian fields for one image.

    Both fields are computed lazily, at most once, and shared by every
    detector that runs on the same processing call. Borders use OpenCV's
    default reflection, so a uniform image yields all-zero fields.
    """

    def __init__(self, image: PixelBuffer):
        self.width = image.width
        self.height = image.height
        self.gray = to_gray(image.pixels)

    @cached_property
    def gradient_magnitude(self) -> np.ndarray:
        # ksize=3 -> [[-1,0,1],[-2,0,2],[-1,0,1]] and its transpose
        gx = cv2.Sobel(self.gray, cv2.CV_32F, 1, 0, ksize=3)
        gy = cv2.Sobel(self.gray, cv2.CV_32F, 0, 1, ksize=3)
        return normalize_by_max(cv2.magnitude(gx, gy))

    @cached_property
    def laplacian_response(self) -> np.ndarray:
        # ksize=1 -> [[0,1,0],[1,-4,1],[0,1,0]]
        lap = cv2.Laplacian(self.gray, cv2.CV_32F, ksize=1)
        return normalize_by_max(np.abs(lap))


def window_sums(values: np.ndarray) -> np.ndarray:
    """
    Summed-area table with a leading zero row/column, so the sum over
    values[y0:y1, x0:x1] is s[y1, x1] - s[y0, x1] - s[y1, x0] + s[y0, x0].
    """
    return cv2.integral(values.astype(np.float64), sdepth=cv2.CV_64F)


def box_sum(table: np.ndarray, x0: int, y0: int, x1: int, y1: int) -> float:
    return float(table[y1, x1] - table[y0, x1] - table[y1, x0] + table[y0, x0])
