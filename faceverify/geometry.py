"""Landmark-based heuristics for deciding whether a face looks at the camera."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from faceverify.types import LandmarkSet, Point

LOGGER = logging.getLogger("faceverify.geometry")

# Vertical eye offset allowed as a fraction of inter-eye distance (head roll, ~16.7 deg).
EYE_LEVEL_RATIO = 0.3
# Horizontal nose-tip offset from the eye midpoint allowed as a fraction of
# inter-eye distance (head yaw).
NOSE_CENTER_RATIO = 0.4


@dataclass(frozen=True)
class GazeMetrics:
    eye_x_diff: float
    eye_y_diff: float
    nose_offset: float
    level_eyes: bool
    centered_nose: bool

    @property
    def is_frontal(self) -> bool:
        return self.level_eyes and self.centered_nose


def centroid(points: Sequence[Point]) -> Point:
    """Mean x and mean y of a group of points."""
    arr = np.asarray(points, dtype=np.float64)
    center = arr.mean(axis=0)
    return float(center[0]), float(center[1])


def gaze_metrics(
    landmarks: LandmarkSet,
    eye_level_ratio: float = EYE_LEVEL_RATIO,
    nose_center_ratio: float = NOSE_CENTER_RATIO,
) -> GazeMetrics:
    left_x, left_y = centroid(landmarks.left_eye)
    right_x, right_y = centroid(landmarks.right_eye)

    eye_x_diff = abs(right_x - left_x)
    eye_y_diff = abs(right_y - left_y)

    nose_x_center = (left_x + right_x) / 2.0
    nose_offset = abs(landmarks.nose_tip[0] - nose_x_center)

    # Strict comparisons: a zero inter-eye distance can never pass.
    return GazeMetrics(
        eye_x_diff=eye_x_diff,
        eye_y_diff=eye_y_diff,
        nose_offset=nose_offset,
        level_eyes=eye_y_diff < eye_x_diff * eye_level_ratio,
        centered_nose=nose_offset < eye_x_diff * nose_center_ratio,
    )


def is_frontal(
    landmarks: LandmarkSet,
    eye_level_ratio: float = EYE_LEVEL_RATIO,
    nose_center_ratio: float = NOSE_CENTER_RATIO,
) -> bool:
    """Return True when the eyes are level and the nose tip is centered between them."""
    metrics = gaze_metrics(landmarks, eye_level_ratio, nose_center_ratio)
    LOGGER.debug(
        "Gaze metrics eye_dx=%.2f eye_dy=%.2f nose_offset=%.2f level=%s centered=%s",
        metrics.eye_x_diff,
        metrics.eye_y_diff,
        metrics.nose_offset,
        metrics.level_eyes,
        metrics.centered_nose,
    )
    return metrics.is_frontal
