#!/usr/bin/env python3
"""CLI for enrolling a reference face and verifying probe images against it."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from faceverify.config import VerificationConfig, load_config
from faceverify.detectors.face_insight import InsightFaceDetector
from faceverify.frames import load_frame
from faceverify.io_utils import dump_json, ensure_dir, list_images, setup_logging
from faceverify.session import VerificationSession

LOGGER = logging.getLogger("scripts.verify_faces")

EXIT_ALL_MATCHED = 0
EXIT_MISMATCH = 1
EXIT_NOT_ENROLLED = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify probe faces against a reference face")
    parser.add_argument("--reference", type=Path, required=True, help="Reference face image")
    parser.add_argument(
        "--probe",
        type=Path,
        nargs="*",
        default=[],
        help="Probe image(s) to verify against the reference",
    )
    parser.add_argument(
        "--probe-dir",
        type=Path,
        default=None,
        help="Directory of probe images (jpg/png), verified in lexicographic order",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("configs/verification.yaml"),
        help="Verification configuration YAML",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Override the distance threshold (lower is stricter)",
    )
    parser.add_argument("--eye-level-ratio", type=float, default=None)
    parser.add_argument("--nose-center-ratio", type=float, default=None)
    parser.add_argument(
        "--providers",
        type=str,
        nargs="*",
        default=None,
        help="ONNX execution providers (overrides platform defaults)",
    )
    parser.add_argument("--output-json", type=Path, default=None, help="Write verdicts as JSON")
    parser.add_argument("--output-csv", type=Path, default=None, help="Write verdicts as CSV")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _resolve_config(args: argparse.Namespace, config: VerificationConfig) -> VerificationConfig:
    """Apply CLI overrides on top of the YAML config."""
    overrides: Dict[str, object] = {}
    if args.threshold is not None:
        overrides["distance_threshold"] = args.threshold
    if args.eye_level_ratio is not None:
        overrides["eye_level_ratio"] = args.eye_level_ratio
    if args.nose_center_ratio is not None:
        overrides["nose_center_ratio"] = args.nose_center_ratio
    if args.providers:
        overrides["providers"] = tuple(args.providers)
    if not overrides:
        return config
    merged = {
        "eye_level_ratio": config.eye_level_ratio,
        "nose_center_ratio": config.nose_center_ratio,
        "distance_threshold": config.distance_threshold,
        "det_size": config.det_size,
        "det_thresh": config.det_thresh,
        "providers": config.providers,
    }
    merged.update(overrides)
    return VerificationConfig(**merged)  # type: ignore[arg-type]


def _collect_probes(args: argparse.Namespace) -> List[Path]:
    probes = list(args.probe)
    if args.probe_dir is not None:
        probes.extend(list_images(args.probe_dir))
    return probes


def run(session: VerificationSession, reference: Path, probes: List[Path]) -> tuple[int, List[Dict]]:
    outcome = session.capture_face(load_frame(reference))
    LOGGER.info("Reference %s: %s", reference, outcome.status_message)
    if not outcome.success:
        return EXIT_NOT_ENROLLED, []

    rows: List[Dict] = []
    exit_code = EXIT_ALL_MATCHED
    for probe in probes:
        try:
            frame = load_frame(probe)
        except FileNotFoundError as exc:
            LOGGER.warning("Skipping probe %s: %s", probe, exc)
            exit_code = EXIT_MISMATCH
            rows.append({"probe": str(probe), "status": f"Unreadable image: {exc}", "is_match": False})
            continue
        verdict = session.verify_face(frame)
        LOGGER.info("Probe %s: %s", probe, session.state.status_message)
        if verdict is None or not verdict.is_match:
            exit_code = EXIT_MISMATCH
        row: Dict = {"probe": str(probe), "status": session.state.status_message}
        if verdict is not None:
            row.update(verdict.to_dict())
            summary = verdict.distance_summary(session.config.distance_threshold)
            if summary:
                LOGGER.info("  %s", summary)
        rows.append(row)
    return exit_code, rows


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    config = _resolve_config(args, load_config(args.config))
    probes = _collect_probes(args)
    if not probes:
        LOGGER.warning("No probe images supplied; only the reference will be enrolled")

    detector = InsightFaceDetector(
        providers=config.providers,
        det_size=config.det_size,
        det_thresh=config.det_thresh,
    )
    session = VerificationSession(detector, config=config)
    exit_code, rows = run(session, args.reference, probes)

    if args.output_json is not None:
        ensure_dir(args.output_json.parent)
        dump_json(args.output_json, {"reference": str(args.reference), "results": rows})
        LOGGER.info("Wrote %s", args.output_json)
    if args.output_csv is not None:
        ensure_dir(args.output_csv.parent)
        pd.DataFrame(rows).to_csv(args.output_csv, index=False)
        LOGGER.info("Wrote %s", args.output_csv)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
