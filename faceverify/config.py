"""Tunable thresholds and detector settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from faceverify.geometry import EYE_LEVEL_RATIO, NOSE_CENTER_RATIO
from faceverify.io_utils import load_yaml
from faceverify.recognition.verifier import DISTANCE_THRESHOLD

LOGGER = logging.getLogger("faceverify.config")


@dataclass
class VerificationConfig:
    eye_level_ratio: float = EYE_LEVEL_RATIO
    nose_center_ratio: float = NOSE_CENTER_RATIO
    distance_threshold: float = DISTANCE_THRESHOLD
    det_size: Tuple[int, int] = (640, 640)
    det_thresh: float = 0.5
    providers: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        self.eye_level_ratio = float(self.eye_level_ratio)
        self.nose_center_ratio = float(self.nose_center_ratio)
        self.distance_threshold = float(self.distance_threshold)
        self.det_thresh = float(self.det_thresh)
        self.det_size = tuple(int(v) for v in self.det_size)  # type: ignore[assignment]
        if self.providers is not None:
            self.providers = tuple(str(p) for p in self.providers)
        for name in ("eye_level_ratio", "nose_center_ratio", "distance_threshold"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if len(self.det_size) != 2:
            raise ValueError(f"det_size must have two entries, got {self.det_size}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VerificationConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            LOGGER.warning("Ignoring unknown config keys: %s", unknown)
        return cls(**{key: value for key, value in data.items() if key in known and value is not None})


def load_config(path: Optional[Path]) -> VerificationConfig:
    """Load config from YAML, falling back to defaults when the file is absent."""
    if path is None or not path.exists():
        if path is not None:
            LOGGER.info("Config %s not found; using defaults", path)
        return VerificationConfig()
    return VerificationConfig.from_mapping(load_yaml(path))
