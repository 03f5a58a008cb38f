# config.py
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml


@dataclass(frozen=True)
class VehicleParams:
    grid_size: int = 8
    window_cells: int = 3
    edge_threshold: float = 0.15
    min_density: float = 0.05
    confidence_gain: float = 5.0
    max_confidence: float = 0.95


@dataclass(frozen=True)
class PlateParams:
    # (width, height) as fractions of the image width
    window_sizes: tuple[tuple[float, float], ...] = ((0.25, 0.065), (0.15, 0.075))
    step_x: float = 0.3
    step_y: float = 0.5
    vehicle_offset: float = 0.3  # skip the top part of the vehicle box
    fallback_top: float = 0.4  # no vehicle -> search below this height
    strong_edge: float = 0.3
    min_edge_density: float = 0.15
    min_strong_ratio: float = 0.1
    density_weight: float = 0.6
    ratio_weight: float = 0.4
    confidence_gain: float = 2.0
    max_confidence: float = 0.9


@dataclass(frozen=True)
class LogoParams:
    diameters: tuple[float, ...] = (0.06, 0.08, 0.10)  # fractions of image width
    step: float = 0.5
    vehicle_center_y: float = 0.2
    fallback_center_y: float = 0.3
    search_radius: float = 0.3
    min_score: float = 0.1
    confidence_gain: float = 3.0
    max_confidence: float = 0.85


@dataclass(frozen=True)
class ColorParams:
    bucket_size: int = 32
    # fallback crop (x, y, width, height) as image fractions
    fallback_crop: tuple[float, float, float, float] = (0.2, 0.3, 0.6, 0.4)


@dataclass(frozen=True)
class DetectorConfig:
    vehicle: VehicleParams = field(default_factory=VehicleParams)
    plate: PlateParams = field(default_factory=PlateParams)
    logo: LogoParams = field(default_factory=LogoParams)
    color: ColorParams = field(default_factory=ColorParams)


@dataclass(frozen=True)
class ProcessingConfig:
    min_vehicle_confidence: float = 0.5
    min_plate_confidence: float = 0.4
    min_logo_confidence: float = 0.3  # not part of the readiness decision
    auto_upload_to_cloud: bool = False
    cloud_endpoint: str = "https://your-cloud-api.com/process"

    # Per-call limits (None = unlimited)
    timeout_s: float | None = None


@dataclass(frozen=True)
class AppConfig:
    # IO
    image_paths: tuple[Path, ...]
    output_dir: Path | None = None

    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    detectors: DetectorConfig = field(default_factory=DetectorConfig)

    # Transport
    api_key: str | None = None
    upload_timeout_s: float = 30.0
    max_upload_retries: int = 3

    # Run
    workers: int = 1
    logging_level: str = "INFO"


def _build(cls, data: dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")

    kwargs = {}
    for key, value in data.items():
        # YAML has no tuples; nested lists come back as lists
        if isinstance(value, list):
            value = tuple(tuple(v) if isinstance(v, list) else v for v in value)
        kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> tuple[ProcessingConfig, DetectorConfig]:
    """
    Load processing thresholds and detector tuning from a YAML file.

    Expected layout (every section and key optional):

        processing: {min_vehicle_confidence: 0.5, ...}
        vehicle: {grid_size: 8, ...}
        plate: {window_sizes: [[0.25, 0.065], [0.15, 0.075]], ...}
        logo: {...}
        color: {...}

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: on unknown sections/keys or a non-mapping document
    """
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    with open(config_file, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file must contain a mapping: {config_file}")

    sections = {
        "vehicle": VehicleParams,
        "plate": PlateParams,
        "logo": LogoParams,
        "color": ColorParams,
    }
    unknown = set(raw) - set(sections) - {"processing"}
    if unknown:
        raise ValueError(f"Unknown config sections: {sorted(unknown)}")

    processing = _build(ProcessingConfig, raw.get("processing") or {})
    detectors = DetectorConfig()
    for name, cls in sections.items():
        if name in raw:
            detectors = replace(detectors, **{name: _build(cls, raw[name] or {})})

    return processing, detectors
