# pipeline/payload.py
from __future__ import annotations

import base64

from .models import DetectionResult

DEVICE_INFO = "vehicle-prep (python, opencv)"


def build_cloud_payload(result: DetectionResult, image_bytes: bytes, device_info: str = DEVICE_INFO) -> dict:
    """
    JSON-serializable payload for the deeper-analysis service.
    Absent regions are left out of boundingBoxes.
    """
    boxes = {}
    if result.vehicle_region is not None:
        boxes["vehicle"] = result.vehicle_region.bbox.to_dict()
    if result.license_plate is not None:
        boxes["licensePlate"] = result.license_plate.bbox.to_dict()
    if result.logo_region is not None:
        boxes["logo"] = result.logo_region.bbox.to_dict()

    return {
        "detectionId": result.id,
        "imageBase64": base64.b64encode(image_bytes).decode("ascii"),
        "boundingBoxes": boxes,
        "vehicleInfo": {
            "type": result.vehicle_region.type.value if result.vehicle_region else None,
            "color": result.vehicle_color.to_dict() if result.vehicle_color else None,
        },
        "metadata": {
            "timestamp": result.timestamp.isoformat(),
            "deviceInfo": device_info,
            "imageWidth": result.image_width,
            "imageHeight": result.image_height,
        },
    }


def summarize_payload(payload: dict) -> dict:
    """Loggable view of a payload (no image data)."""
    boxes = payload["boundingBoxes"]
    color = payload["vehicleInfo"]["color"]
    meta = payload["metadata"]
    return {
        "detectionId": payload["detectionId"],
        "hasBoundingBoxes": {k: k in boxes for k in ("vehicle", "licensePlate", "logo")},
        "vehicleType": payload["vehicleInfo"]["type"],
        "vehicleColor": color["name"] if color else None,
        "imageSize": f"{meta['imageWidth']}x{meta['imageHeight']}",
    }
