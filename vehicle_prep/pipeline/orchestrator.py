# pipeline/orchestrator.py
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from ..config import DetectorConfig, ProcessingConfig
from .color import ColorClassifier
from .edges import EdgeMap
from .errors import (
    PipelineError,
    ProcessingCancelled,
    ProcessingError,
    ProcessingTimeout,
)
from .image_io import decode_image, read_image
from .logo_detector import LogoRegionDetector
from .models import DetectionResult, PixelBuffer, PlateRegion, RegionDetector, VehicleRegion
from .plate_detector import PlateRegionDetector
from .utils import new_detection_id
from .vehicle_detector import VehicleRegionDetector

log = logging.getLogger(__name__)


def is_ready_for_cloud(
    vehicle: Optional[VehicleRegion],
    plate: Optional[PlateRegion],
    cfg: ProcessingConfig,
) -> bool:
    return bool(
        (vehicle is not None and vehicle.confidence >= cfg.min_vehicle_confidence)
        or (plate is not None and plate.confidence >= cfg.min_plate_confidence)
    )


class _Deadline:
    """Cooperative cancel/timeout check, called between scan stages."""

    def __init__(self, timeout_s: float | None, cancel: threading.Event | None):
        self.expires = None if timeout_s is None else time.monotonic() + timeout_s
        self.timeout_s = timeout_s
        self.cancel = cancel

    def __call__(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise ProcessingCancelled("Processing cancelled by caller")
        if self.expires is not None and time.monotonic() > self.expires:
            raise ProcessingTimeout(f"Processing exceeded {self.timeout_s:.2f}s")


class DetectionPipeline:
    """
    decode -> vehicle -> {plate, logo, color} -> assembled DetectionResult.

    A constructed pipeline is ready to use; it holds only immutable config,
    so one instance can serve concurrent calls. Each call builds its own
    EdgeMap, shared by the detectors of that call only.
    """

    def __init__(self, config: ProcessingConfig | None = None, detectors: DetectorConfig | None = None):
        self.config = config or ProcessingConfig()
        self.detectors = detectors or DetectorConfig()

        for name in ("min_vehicle_confidence", "min_plate_confidence", "min_logo_confidence"):
            value = getattr(self.config, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.config.timeout_s is not None and self.config.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.config.timeout_s}")

        self.vehicle_detector = VehicleRegionDetector(self.detectors.vehicle)
        self.plate_detector: RegionDetector = PlateRegionDetector(self.detectors.plate)
        self.logo_detector: RegionDetector = LogoRegionDetector(self.detectors.logo)
        self.color_classifier = ColorClassifier(self.detectors.color)

        log.info(
            "DetectionPipeline initialized (vehicle>=%.2f, plate>=%.2f, logo>=%.2f, cv2 %s).",
            self.config.min_vehicle_confidence,
            self.config.min_plate_confidence,
            self.config.min_logo_confidence,
            cv2.__version__,
        )

    def process_file(self, path: Path, cancel: threading.Event | None = None) -> DetectionResult:
        image, _ = read_image(path)
        return self.process(image, cancel=cancel)

    def process_bytes(self, data: bytes, cancel: threading.Event | None = None) -> DetectionResult:
        return self.process(decode_image(data), cancel=cancel)

    def process(self, image: PixelBuffer | np.ndarray, cancel: threading.Event | None = None) -> DetectionResult:
        start = time.perf_counter()
        checkpoint = _Deadline(self.config.timeout_s, cancel)

        if not isinstance(image, PixelBuffer):
            image = PixelBuffer.from_array(image)

        try:
            checkpoint()
            edges = EdgeMap(image)

            vehicle = self.vehicle_detector.detect(edges.gradient_magnitude)
            checkpoint()

            plate = self.plate_detector.detect(edges.gradient_magnitude, vehicle, checkpoint)
            logo = self.logo_detector.detect(edges.laplacian_response, vehicle, checkpoint)
            checkpoint()

            color = self.color_classifier.classify(image, vehicle)
        except PipelineError:
            raise
        except (cv2.error, ValueError, ArithmeticError, MemoryError, IndexError) as exc:
            raise ProcessingError(f"Detection failed on {image.width}x{image.height} image: {exc}") from exc

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        result = DetectionResult(
            id=new_detection_id(),
            timestamp=datetime.now(timezone.utc),
            image_width=image.width,
            image_height=image.height,
            vehicle_region=vehicle,
            license_plate=plate,
            logo_region=logo,
            vehicle_color=color,
            processing_time_ms=elapsed_ms,
            is_ready_for_cloud=is_ready_for_cloud(vehicle, plate, self.config),
        )

        log.info(
            "%s: %dx%d vehicle=%s plate=%s logo=%s color=%s ready=%s (%.1f ms)",
            result.id,
            image.width,
            image.height,
            _fmt(vehicle),
            _fmt(plate),
            _fmt(logo),
            color.name.value if color else None,
            result.is_ready_for_cloud,
            elapsed_ms,
        )
        return result


def _fmt(region) -> str:
    if region is None:
        return "-"
    return f"{region.confidence:.2f}"
