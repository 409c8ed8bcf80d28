"""Exception taxonomy for enrollment and verification outcomes."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    NO_FACE = "no_face"
    MULTIPLE_FACES = "multiple_faces"
    NOT_FACING_CAMERA = "not_facing_camera"
    NOT_ENROLLED = "not_enrolled"


class FaceVerifyError(Exception):
    """Base class for expected, recoverable verification failures."""

    reason: Optional[FailureReason] = None


class CaptureError(FaceVerifyError):
    """The frame did not contain a single usable, frontal face."""


class NoFaceError(CaptureError):
    reason = FailureReason.NO_FACE

    def __init__(self) -> None:
        super().__init__("No face detected in frame")


class MultipleFacesError(CaptureError):
    reason = FailureReason.MULTIPLE_FACES

    def __init__(self, count: int) -> None:
        super().__init__(f"Multiple faces detected in frame ({count})")
        self.count = count


class NotFacingCameraError(CaptureError):
    reason = FailureReason.NOT_FACING_CAMERA

    def __init__(self) -> None:
        super().__init__("Face is not oriented towards the camera")


class NotEnrolledError(FaceVerifyError):
    """Raised when verification is requested before any successful enrollment."""

    reason = FailureReason.NOT_ENROLLED

    def __init__(self) -> None:
        super().__init__("No reference face enrolled")
