"""
Tests for the cloud payload builder.
"""

import base64
import json
from datetime import datetime, timezone

from vehicle_prep.pipeline.models import (
    BBox,
    ColorInfo,
    ColorName,
    DetectionResult,
    PlateRegion,
    VehicleRegion,
    VehicleType,
)
from vehicle_prep.pipeline.payload import build_cloud_payload, summarize_payload


def _result(vehicle=None, plate=None, logo=None, color=None):
    return DetectionResult(
        id="det_1700000000000_abcdef123",
        timestamp=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        image_width=640,
        image_height=480,
        vehicle_region=vehicle,
        license_plate=plate,
        logo_region=logo,
        vehicle_color=color,
        processing_time_ms=12.5,
        is_ready_for_cloud=vehicle is not None,
    )


def test_full_payload():
    result = _result(
        vehicle=VehicleRegion(VehicleType.REAR, BBox(80, 60, 240, 180), 0.9),
        plate=PlateRegion(BBox(200, 300, 160, 41), 0.7),
        color=ColorInfo("#1a1a2e", ColorName.BLACK, 1.0, (26, 26, 46)),
    )
    payload = build_cloud_payload(result, b"\xff\xd8jpeg", device_info="test-device")

    assert payload["detectionId"] == "det_1700000000000_abcdef123"
    assert base64.b64decode(payload["imageBase64"]) == b"\xff\xd8jpeg"
    assert payload["boundingBoxes"] == {
        "vehicle": {"x": 80, "y": 60, "width": 240, "height": 180},
        "licensePlate": {"x": 200, "y": 300, "width": 160, "height": 41},
    }
    assert payload["vehicleInfo"] == {
        "type": "rear",
        "color": {
            "dominantHex": "#1a1a2e",
            "name": "Black",
            "confidence": 1.0,
            "rgb": {"r": 26, "g": 26, "b": 46},
        },
    }
    assert payload["metadata"] == {
        "timestamp": "2024-05-01T12:30:00+00:00",
        "deviceInfo": "test-device",
        "imageWidth": 640,
        "imageHeight": 480,
    }


def test_empty_result_payload_is_json_serializable():
    payload = build_cloud_payload(_result(), b"")

    assert payload["boundingBoxes"] == {}
    assert payload["vehicleInfo"] == {"type": None, "color": None}
    decoded = json.loads(json.dumps(payload))
    assert decoded["imageBase64"] == ""


def test_summary_has_no_image_data():
    result = _result(vehicle=VehicleRegion(VehicleType.FRONT, BBox(0, 0, 10, 10), 0.6))
    summary = summarize_payload(build_cloud_payload(result, b"abc"))

    assert "imageBase64" not in summary
    assert summary["hasBoundingBoxes"] == {"vehicle": True, "licensePlate": False, "logo": False}
    assert summary["vehicleType"] == "front"
    assert summary["vehicleColor"] is None
    assert summary["imageSize"] == "640x480"
