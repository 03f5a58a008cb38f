"""
Tests for the multi-scale plate window scan.
"""

import math

import numpy as np
import pytest

from tests.utils import striped_rect_image
from vehicle_prep.config import PlateParams
from vehicle_prep.pipeline.edges import EdgeMap
from vehicle_prep.pipeline.models import BBox, PixelBuffer, VehicleRegion, VehicleType
from vehicle_prep.pipeline.plate_detector import PlateRegionDetector

# 100x26 plate-like pattern on a 400x300 frame (first window size is 100x26)
PLATE = (150, 200, 250, 226)


@pytest.fixture
def plate_gradient():
    img = striped_rect_image(400, 300, *PLATE)
    return EdgeMap(PixelBuffer.from_array(img)).gradient_magnitude


def test_uniform_image_has_no_plate(uniform_image):
    grad = EdgeMap(PixelBuffer.from_array(uniform_image)).gradient_magnitude
    detector = PlateRegionDetector()
    assert detector.candidates(grad) == []
    assert detector.detect(grad) is None


def test_plate_pattern_is_found(plate_gradient):
    plate = PlateRegionDetector().detect(plate_gradient)

    assert plate is not None
    x1, y1, x2, y2 = PLATE
    cx = plate.bbox.x + plate.bbox.width / 2
    cy = plate.bbox.y + plate.bbox.height / 2
    assert x1 <= cx <= x2 and y1 <= cy <= y2
    assert 0.0 < plate.confidence <= 0.9


def test_candidates_are_sorted_and_above_thresholds(plate_gradient):
    ranked = PlateRegionDetector().candidates(plate_gradient)

    assert ranked
    scores = [c.score for c in ranked]
    assert scores == sorted(scores, reverse=True)
    for c in ranked:
        assert c.edge_density > 0.15
        assert c.strong_edge_ratio > 0.1
        assert c.score == pytest.approx(0.6 * c.edge_density + 0.4 * c.strong_edge_ratio)
        assert (c.bbox.width, c.bbox.height) in {(100, 26), (60, 30)}


def test_without_vehicle_search_covers_lower_60_percent(scene_edges):
    ranked = PlateRegionDetector().candidates(scene_edges.gradient_magnitude)

    assert ranked
    for c in ranked:
        assert c.bbox.y >= 120
        assert c.bbox.y2 <= 300
        assert 0 <= c.bbox.x and c.bbox.x2 <= 400


def test_vehicle_hint_restricts_search_bounds(scene_edges):
    vehicle = VehicleRegion(VehicleType.REAR, BBox(100, 90, 200, 120), 0.9)
    detector = PlateRegionDetector()
    ranked = detector.candidates(scene_edges.gradient_magnitude, vehicle)

    bounds = detector.search_bounds(400, 300, vehicle)
    assert (bounds.x0, bounds.y0, bounds.x1, bounds.y1) == (100, 126, 300, 210)

    assert ranked
    for c in ranked:
        assert c.bbox.x >= 100
        assert c.bbox.y >= 126
        assert c.bbox.x2 <= 300
        assert c.bbox.y2 <= 210

    plate = detector.detect(scene_edges.gradient_magnitude, vehicle)
    assert plate.bbox == ranked[0].bbox


def test_confidence_is_capped():
    field = np.ones((300, 400), dtype=np.float32)
    plate = PlateRegionDetector().detect(field)
    # score 1.0 -> min(2.0, 0.9)
    assert plate.confidence == pytest.approx(0.9)


def test_equal_scores_keep_scan_order():
    field = np.ones((300, 400), dtype=np.float32)
    ranked = PlateRegionDetector().candidates(field)

    # first size, first row, first column
    assert ranked[0].bbox == BBox(0, 120, 100, 26)
    assert ranked[1].bbox == BBox(30, 120, 100, 26)


def test_weak_windows_are_rejected():
    # dense but faint: mean 0.2 passes, nothing above 0.3
    field = np.full((300, 400), 0.2, dtype=np.float32)
    assert PlateRegionDetector().detect(field) is None


def test_tiny_image_skips_degenerate_sizes():
    field = np.ones((10, 10), dtype=np.float32)
    assert PlateRegionDetector().detect(field) is None


def test_custom_window_size():
    field = np.ones((100, 100), dtype=np.float32)
    params = PlateParams(window_sizes=((0.3, 0.1),))
    ranked = PlateRegionDetector(params).candidates(field)
    assert {(c.bbox.width, c.bbox.height) for c in ranked} == {(30, 10)}
    assert all(c.bbox.y >= math.floor(100 * 0.4) for c in ranked)


def test_detection_is_deterministic(noise_image):
    grad = EdgeMap(PixelBuffer.from_array(noise_image)).gradient_magnitude
    assert PlateRegionDetector().detect(grad) == PlateRegionDetector().detect(grad.copy())
