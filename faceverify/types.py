"""Common dataclasses and type aliases used across the faceverify package."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from faceverify.errors import FailureReason

# Bounding box order: x1, y1, x2, y2 (pixel coordinates)
BBox = Tuple[float, float, float, float]
Point = Tuple[float, float]

# iBUG 68-point layout (shared by face-api.js FaceLandmarks68 and InsightFace 1k3d68)
NOSE_SLICE = slice(27, 36)
LEFT_EYE_SLICE = slice(36, 42)
RIGHT_EYE_SLICE = slice(42, 48)
NOSE_TIP_INDEX = 3


def _as_points(raw: Sequence[Sequence[float]]) -> Tuple[Point, ...]:
    return tuple((float(p[0]), float(p[1])) for p in raw)


@dataclass(frozen=True)
class LandmarkSet:
    """Named landmark groups for a single detected face."""

    nose: Tuple[Point, ...]
    left_eye: Tuple[Point, ...]
    right_eye: Tuple[Point, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "nose", _as_points(self.nose))
        object.__setattr__(self, "left_eye", _as_points(self.left_eye))
        object.__setattr__(self, "right_eye", _as_points(self.right_eye))
        if len(self.nose) <= NOSE_TIP_INDEX:
            raise ValueError(
                f"Nose landmarks need at least {NOSE_TIP_INDEX + 1} points, got {len(self.nose)}"
            )
        if not self.left_eye or not self.right_eye:
            raise ValueError("Eye landmark groups must not be empty")

    @property
    def nose_tip(self) -> Point:
        return self.nose[NOSE_TIP_INDEX]

    @classmethod
    def from_68_points(cls, points: Sequence[Sequence[float]]) -> "LandmarkSet":
        """Split a 68-point landmark array into nose and eye groups."""
        arr = np.asarray(points, dtype=np.float32)
        if arr.ndim != 2 or arr.shape[0] != 68 or arr.shape[1] < 2:
            raise ValueError(f"Expected (68, 2+) landmark array, got shape {arr.shape}")
        arr = arr[:, :2]
        return cls(
            nose=_as_points(arr[NOSE_SLICE]),
            left_eye=_as_points(arr[LEFT_EYE_SLICE]),
            right_eye=_as_points(arr[RIGHT_EYE_SLICE]),
        )


@dataclass(eq=False)
class Detection:
    """A detected face: landmarks plus identity descriptor."""

    landmarks: LandmarkSet
    descriptor: np.ndarray
    bbox: BBox = (0.0, 0.0, 0.0, 0.0)
    score: float = 1.0

    def __post_init__(self) -> None:
        self.descriptor = as_descriptor(self.descriptor)


@dataclass(frozen=True, eq=False)
class EnrolledFace:
    """Reference identity for the session."""

    descriptor: np.ndarray


@dataclass(frozen=True)
class VerificationVerdict:
    """Outcome of a single verification attempt."""

    is_match: bool
    message: str
    distance: Optional[float] = None
    confidence: Optional[int] = None
    reason: Optional[FailureReason] = None

    def distance_summary(self, threshold: float) -> Optional[str]:
        if self.distance is None:
            return None
        return f"Distance score: {self.distance:.2f} (Lower is more similar. Threshold: {threshold})"

    def to_dict(self) -> dict:
        return {
            "is_match": self.is_match,
            "message": self.message,
            "distance": self.distance,
            "confidence": self.confidence,
            "reason": self.reason.value if self.reason is not None else None,
        }


class FrameKind(str, Enum):
    EMPTY = "empty"
    AMBIGUOUS = "ambiguous"
    USABLE = "usable"


@dataclass(frozen=True)
class FrameClassification:
    """Tagged classification of the detections found in a frame."""

    kind: FrameKind
    count: int = 0
    detection: Optional[Detection] = None

    def __post_init__(self) -> None:
        if self.kind is FrameKind.USABLE:
            if self.detection is None or self.count != 1:
                raise ValueError("Usable frame needs exactly one detection")
            return
        if self.detection is not None:
            raise ValueError(f"{self.kind.value} frame must not carry a detection")
        if self.kind is FrameKind.EMPTY and self.count != 0:
            raise ValueError(f"Empty frame must have count 0, got {self.count}")
        if self.kind is FrameKind.AMBIGUOUS and self.count < 2:
            raise ValueError(f"Ambiguous frame needs at least 2 faces, got {self.count}")

    @classmethod
    def empty(cls) -> "FrameClassification":
        return cls(FrameKind.EMPTY, 0, None)

    @classmethod
    def ambiguous(cls, count: int) -> "FrameClassification":
        return cls(FrameKind.AMBIGUOUS, count, None)

    @classmethod
    def usable(cls, detection: Detection) -> "FrameClassification":
        return cls(FrameKind.USABLE, 1, detection)

    @property
    def is_empty(self) -> bool:
        return self.kind is FrameKind.EMPTY

    @property
    def is_ambiguous(self) -> bool:
        return self.kind is FrameKind.AMBIGUOUS

    @property
    def is_usable(self) -> bool:
        return self.kind is FrameKind.USABLE


def as_descriptor(raw) -> np.ndarray:
    """Coerce a descriptor into a read-only 1D float32 vector."""
    arr = np.array(raw, dtype=np.float32).reshape(-1)
    if arr.size == 0:
        raise ValueError("Descriptor must not be empty")
    arr.setflags(write=False)
    return arr


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """L2 norm of the element-wise difference between two descriptors."""
    if a.shape != b.shape:
        raise ValueError(f"Descriptor shapes do not match: {a.shape} vs {b.shape}")
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.linalg.norm(diff))
