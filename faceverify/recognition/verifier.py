"""Euclidean-distance verifier holding a single enrolled reference face."""

from __future__ import annotations

import logging
import math
from typing import Optional

from faceverify.errors import (
    FailureReason,
    MultipleFacesError,
    NoFaceError,
    NotEnrolledError,
    NotFacingCameraError,
)
from faceverify.types import (
    EnrolledFace,
    FrameClassification,
    VerificationVerdict,
    euclidean_distance,
)

LOGGER = logging.getLogger("faceverify.recognition.verifier")

# Descriptors closer than this are treated as the same identity.
DISTANCE_THRESHOLD = 0.6

FAILURE_MESSAGES = {
    FailureReason.NO_FACE: "No face detected for verification.",
    FailureReason.MULTIPLE_FACES: "Multiple faces detected. Please ensure only your face is in the frame.",
    FailureReason.NOT_FACING_CAMERA: "Please look directly at the screen for verification.",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def confidence_from_distance(distance: float) -> int:
    """Percentage derived from distance; not clamped, negative once distance exceeds 1."""
    return _round_half_up((1.0 - distance) * 100.0)


def _capture_failure(classification: FrameClassification, is_frontal: bool) -> Optional[FailureReason]:
    if classification.is_empty:
        return FailureReason.NO_FACE
    if classification.is_ambiguous:
        return FailureReason.MULTIPLE_FACES
    if not is_frontal:
        return FailureReason.NOT_FACING_CAMERA
    return None


class VerificationEngine:
    """Enrolls one reference descriptor and compares probe descriptors against it."""

    def __init__(self, distance_threshold: float = DISTANCE_THRESHOLD) -> None:
        self.distance_threshold = distance_threshold
        self.enrolled: Optional[EnrolledFace] = None

    def is_enrolled(self) -> bool:
        return self.enrolled is not None

    def reset(self) -> None:
        self.enrolled = None

    def enroll(self, classification: FrameClassification, is_frontal: bool) -> EnrolledFace:
        """Store the usable frame's descriptor as the reference, replacing any previous one."""
        reason = _capture_failure(classification, is_frontal)
        if reason is FailureReason.NO_FACE:
            raise NoFaceError()
        if reason is FailureReason.MULTIPLE_FACES:
            raise MultipleFacesError(classification.count)
        if reason is FailureReason.NOT_FACING_CAMERA:
            raise NotFacingCameraError()

        detection = classification.detection
        if self.enrolled is not None:
            LOGGER.info("Replacing enrolled reference face")
        self.enrolled = EnrolledFace(descriptor=detection.descriptor)
        LOGGER.info("Enrolled reference face (descriptor dim=%d)", detection.descriptor.shape[0])
        return self.enrolled

    def verify(self, classification: FrameClassification, is_frontal: bool) -> VerificationVerdict:
        """Compare the usable frame against the reference.

        Capture problems (no face, several faces, face turned away) come back as a
        failed verdict so the caller always has something to render. Calling this
        before :meth:`enroll` raises :class:`NotEnrolledError`.
        """
        if self.enrolled is None:
            raise NotEnrolledError()

        reason = _capture_failure(classification, is_frontal)
        if reason is not None:
            LOGGER.debug("Verification rejected before matching: %s", reason.value)
            return VerificationVerdict(is_match=False, message=FAILURE_MESSAGES[reason], reason=reason)

        detection = classification.detection
        distance = euclidean_distance(self.enrolled.descriptor, detection.descriptor)
        is_match = distance < self.distance_threshold
        confidence = confidence_from_distance(distance)
        if is_match:
            message = f"Match confirmed! ({confidence}% confidence)"
        else:
            message = f"Different person detected. ({confidence}% similarity)"
        LOGGER.info(
            "Verification distance=%.4f threshold=%.2f match=%s confidence=%d",
            distance,
            self.distance_threshold,
            is_match,
            confidence,
        )
        return VerificationVerdict(
            is_match=is_match,
            message=message,
            distance=distance,
            confidence=confidence,
        )
