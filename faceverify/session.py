"""Session controller sequencing detection, gaze gating and verification per user action."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from faceverify.config import VerificationConfig
from faceverify.detectors.face_insight import FaceDetector
from faceverify.errors import CaptureError, FailureReason
from faceverify.geometry import is_frontal
from faceverify.recognition.verifier import VerificationEngine
from faceverify.selection import classify
from faceverify.types import Detection, EnrolledFace, FrameClassification, VerificationVerdict

LOGGER = logging.getLogger("faceverify.session")

READY_STATUS = "Models loaded successfully, you can now capture face."
CAPTURED_STATUS = "Face captured successfully! Now try the verification."
NOT_ENROLLED_STATUS = "Please capture your initial face first"
CAPTURE_FAILED_STATUS = "Failed at detecting face."
VERIFY_FAILED_STATUS = "Error at verifying the face."

CAPTURE_STATUS = {
    FailureReason.NO_FACE: "No face detected! Please position yourself properly and try again",
    FailureReason.MULTIPLE_FACES: "Multiple faces detected! Please ensure only your face is in the frame.",
    FailureReason.NOT_FACING_CAMERA: "Please look directly at the screen before capturing your face.",
}

VERIFY_STATUS = {
    FailureReason.NO_FACE: "Verification failed: No face detected.",
    FailureReason.MULTIPLE_FACES: "Verification failed: Multiple faces detected.",
    FailureReason.NOT_FACING_CAMERA: "Verification failed: Not looking at screen.",
}


@dataclass
class SessionState:
    """Display state consumed by the UI layer."""

    status_message: str = READY_STATUS
    verdict: Optional[VerificationVerdict] = None
    multiple_faces_detected: bool = False
    looking_at_screen: bool = True


@dataclass
class CaptureOutcome:
    success: bool
    status_message: str
    reason: Optional[FailureReason] = None
    error: Optional[Exception] = field(default=None, repr=False)


class VerificationSession:
    """Runs the capture and verify pipelines against a face detector."""

    def __init__(
        self,
        detector: FaceDetector,
        config: Optional[VerificationConfig] = None,
        engine: Optional[VerificationEngine] = None,
    ) -> None:
        self.detector = detector
        self.config = config or VerificationConfig()
        self.engine = engine or VerificationEngine(distance_threshold=self.config.distance_threshold)
        self.state = SessionState()

    def is_enrolled(self) -> bool:
        return self.engine.is_enrolled()

    def reset(self) -> None:
        """Drop the enrolled reference and start over with fresh display state."""
        self.engine.reset()
        self.state = SessionState()

    def enroll(self, frame: np.ndarray) -> EnrolledFace:
        """Enroll the face in ``frame``; raises a :class:`CaptureError` subclass on rejection."""
        classification, frontal = self._gate(self.detector.detect(frame))
        return self.engine.enroll(classification, frontal)

    def verify(self, frame: np.ndarray) -> VerificationVerdict:
        """Verify the face in ``frame``; raises :class:`NotEnrolledError` before enrollment."""
        classification, frontal = self._gate(self.detector.detect(frame))
        return self.engine.verify(classification, frontal)

    def capture_face(self, frame: np.ndarray) -> CaptureOutcome:
        self.state.status_message = "Detecting Face...."
        try:
            classification, frontal = self._gate(self.detector.detect(frame))
            self.engine.enroll(classification, frontal)
        except CaptureError as exc:
            LOGGER.warning("Capture rejected: %s", exc)
            return self._capture_outcome(False, CAPTURE_STATUS[exc.reason], reason=exc.reason, error=exc)
        except Exception as exc:
            LOGGER.exception("Capturing reference face failed")
            return self._capture_outcome(False, CAPTURE_FAILED_STATUS, error=exc)
        return self._capture_outcome(True, CAPTURED_STATUS)

    def verify_face(self, frame: np.ndarray) -> Optional[VerificationVerdict]:
        """Run the verify action, returning ``None`` when no verdict could be produced."""
        if not self.is_enrolled():
            self.state.status_message = NOT_ENROLLED_STATUS
            return None

        self.state.status_message = "Verifying face"
        try:
            classification, frontal = self._gate(self.detector.detect(frame))
            verdict = self.engine.verify(classification, frontal)
        except Exception:
            LOGGER.exception("Verifying face failed")
            self.state.status_message = VERIFY_FAILED_STATUS
            return None

        self.state.verdict = verdict
        if verdict.reason is not None:
            LOGGER.warning("Verification rejected: %s", verdict.reason.value)
            self.state.status_message = VERIFY_STATUS[verdict.reason]
        elif verdict.is_match:
            self.state.status_message = "Verification complete: Match confirmed!"
        else:
            self.state.status_message = "Verification complete: Different person detected."
        return verdict

    def _gate(self, detections: Sequence[Detection]) -> Tuple[FrameClassification, bool]:
        classification = classify(detections)
        if classification.is_ambiguous:
            self.state.multiple_faces_detected = True
            return classification, False
        if not classification.is_usable:
            return classification, False

        frontal = is_frontal(
            classification.detection.landmarks,
            eye_level_ratio=self.config.eye_level_ratio,
            nose_center_ratio=self.config.nose_center_ratio,
        )
        self.state.looking_at_screen = frontal
        return classification, frontal

    def _capture_outcome(
        self,
        success: bool,
        status: str,
        reason: Optional[FailureReason] = None,
        error: Optional[Exception] = None,
    ) -> CaptureOutcome:
        self.state.status_message = status
        return CaptureOutcome(success=success, status_message=status, reason=reason, error=error)
