# main.py
from __future__ import annotations

import argparse
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path

from .config import AppConfig, DetectorConfig, ProcessingConfig, load_config
from .pipeline.errors import PipelineError
from .pipeline.image_io import read_image
from .pipeline.models import DetectionResult
from .pipeline.orchestrator import DetectionPipeline
from .pipeline.payload import build_cloud_payload
from .pipeline.synthetic import SyntheticResultGenerator
from .pipeline.transport import CloudUploader
from .pipeline.utils import setup_logging

log = logging.getLogger(__name__)


def _process_one(pipeline: DetectionPipeline, path: Path) -> tuple[Path, DetectionResult | None, dict | None, str | None]:
    try:
        image, data = read_image(path)
        result = pipeline.process(image)
    except PipelineError as exc:
        log.error("%s: %s", path, exc)
        return path, None, None, str(exc)
    return path, result, build_cloud_payload(result, data), None


def _describe(result: DetectionResult) -> list[str]:
    lines = [f"  image: {result.image_width}x{result.image_height}  ({result.processing_time_ms:.1f} ms)"]
    v = result.vehicle_region
    lines.append(f"  vehicle: {v.type.value} {v.bbox} conf={v.confidence:.3f}" if v else "  vehicle: none")
    p = result.license_plate
    lines.append(f"  plate:   {p.bbox} conf={p.confidence:.3f}" if p else "  plate:   none")
    lo = result.logo_region
    lines.append(f"  logo:    {lo.bbox} conf={lo.confidence:.3f}" if lo else "  logo:    none")
    c = result.vehicle_color
    lines.append(f"  color:   {c.name.value} {c.dominant_hex} conf={c.confidence:.3f}" if c else "  color:   none")
    lines.append(f"  ready for cloud: {result.is_ready_for_cloud}")
    return lines


def run(cfg: AppConfig) -> int:
    setup_logging(cfg.logging_level)

    pipeline = DetectionPipeline(cfg.processing, cfg.detectors)
    uploader = None
    if cfg.processing.auto_upload_to_cloud:
        uploader = CloudUploader(
            cfg.processing.cloud_endpoint,
            api_key=cfg.api_key,
            timeout_s=cfg.upload_timeout_s,
        )

    if cfg.output_dir is not None:
        cfg.output_dir.mkdir(parents=True, exist_ok=True)

    # Independent calls: each owns its buffers, the pipeline is read-only
    with ThreadPoolExecutor(max_workers=max(1, cfg.workers)) as pool:
        outcomes = list(pool.map(lambda p: _process_one(pipeline, p), cfg.image_paths))

    failures = 0
    for path, result, payload, error in outcomes:
        print(f"\n=== {path} ===")
        if result is None:
            failures += 1
            print(f"  processing failed: {error}")
            continue

        for line in _describe(result):
            print(line)

        if cfg.output_dir is not None:
            out_path = cfg.output_dir / f"{path.stem}_{result.id}.json"
            out_path.write_text(json.dumps(payload, indent=2))
            print(f"  payload written: {out_path}")

        if uploader is not None:
            if not result.is_ready_for_cloud:
                print("  upload skipped: not enough signal")
                continue
            up = uploader.upload_with_retry(payload, max_retries=cfg.max_upload_retries)
            if up.success:
                print(f"  uploaded: job {up.job_id}")
            else:
                failures += 1
                print(f"  upload failed: {up.error}")

    print(f"\nProcessed {len(outcomes)} image(s), {failures} failure(s).")
    return 1 if failures else 0


def run_demo(width: int, height: int, seed: int | None) -> int:
    """Print a synthetic payload (no image, no real detection)."""
    result = SyntheticResultGenerator(seed=seed).generate(width, height)
    print(json.dumps(build_cloud_payload(result, b""), indent=2))
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Heuristic vehicle/plate/logo/color preprocessing")
    p.add_argument("images", nargs="*", help="Image files to process")
    p.add_argument("--config", help="YAML file with processing/detector overrides")
    p.add_argument("--out", default=None, help="Directory for JSON payloads")
    p.add_argument("--upload", action="store_true", help="Upload results that are ready for cloud")
    p.add_argument("--endpoint", default=None, help="Cloud endpoint (overrides config)")
    p.add_argument("--api-key", default=None, help="Bearer token for the cloud endpoint")
    p.add_argument("--retries", type=int, default=3, help="Upload attempts per image")
    p.add_argument("--timeout", type=float, default=0, help="Per-image processing timeout in seconds, 0 means no limit")
    p.add_argument("--workers", type=int, default=1, help="Images processed in parallel")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--demo", metavar="WxH", default=None, help="Print a synthetic payload for a WxH image and exit")
    p.add_argument("--seed", type=int, default=None, help="RNG seed for --demo")
    args = p.parse_args(argv)

    if args.demo is None and not args.images:
        p.error("at least one image is required (or --demo)")
    return args


def build_config(args: argparse.Namespace) -> AppConfig:
    processing, detectors = ProcessingConfig(), DetectorConfig()
    if args.config:
        processing, detectors = load_config(args.config)

    overrides = {}
    if args.upload:
        overrides["auto_upload_to_cloud"] = True
    if args.endpoint:
        overrides["cloud_endpoint"] = args.endpoint
    if args.timeout > 0:
        overrides["timeout_s"] = args.timeout
    processing = replace(processing, **overrides)

    return AppConfig(
        image_paths=tuple(Path(p) for p in args.images),
        output_dir=(Path(args.out) if args.out else None),
        processing=processing,
        detectors=detectors,
        api_key=args.api_key,
        max_upload_retries=max(1, args.retries),
        workers=max(1, args.workers),
        logging_level=args.log_level,
    )


def cli(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.demo is not None:
        try:
            width, height = (int(v) for v in args.demo.lower().split("x"))
        except ValueError:
            raise SystemExit(f"--demo expects WxH, got {args.demo!r}")
        return run_demo(width, height, args.seed)
    return run(build_config(args))


if __name__ == "__main__":
    raise SystemExit(cli())
