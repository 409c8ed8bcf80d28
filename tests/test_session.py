from typing import List

import numpy as np
import pytest

from faceverify.config import VerificationConfig
from faceverify.errors import FailureReason, MultipleFacesError, NoFaceError, NotEnrolledError
from faceverify.recognition.verifier import VerificationEngine
from faceverify.session import VerificationSession
from faceverify.types import Detection, LandmarkSet

FRAME = np.zeros((480, 640, 3), dtype=np.uint8)

FRONTAL = LandmarkSet(
    nose=[(130.0, 100.0 + 10.0 * i) for i in range(9)],
    left_eye=[(98.0, 100.0), (102.0, 100.0)],
    right_eye=[(158.0, 100.0), (162.0, 100.0)],
)
TURNED = LandmarkSet(
    nose=[(165.0, 100.0 + 10.0 * i) for i in range(9)],
    left_eye=[(98.0, 100.0), (102.0, 100.0)],
    right_eye=[(158.0, 100.0), (162.0, 100.0)],
)


def make_detection(first: float = 0.0, landmarks: LandmarkSet = FRONTAL) -> Detection:
    descriptor = np.zeros(128, dtype=np.float32)
    descriptor[0] = first
    return Detection(landmarks=landmarks, descriptor=descriptor)


class StubDetector:
    """Returns queued detection lists, one per call."""

    def __init__(self, *responses: List[Detection]) -> None:
        self.responses = list(responses)
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        return self.responses.pop(0)


class FailingDetector:
    def detect(self, frame):
        raise RuntimeError("backend crashed")


def test_capture_then_verify_same_person():
    session = VerificationSession(StubDetector([make_detection(0.0)], [make_detection(0.1)]))

    outcome = session.capture_face(FRAME)
    assert outcome.success
    assert outcome.status_message == "Face captured successfully! Now try the verification."
    assert session.is_enrolled()

    verdict = session.verify_face(FRAME)
    assert verdict is not None and verdict.is_match
    assert verdict.confidence == 90
    assert session.state.verdict is verdict
    assert session.state.status_message == "Verification complete: Match confirmed!"


def test_verify_different_person():
    session = VerificationSession(StubDetector([make_detection(0.0)], [make_detection(0.8)]))
    session.capture_face(FRAME)
    verdict = session.verify_face(FRAME)
    assert verdict is not None and not verdict.is_match
    assert session.state.status_message == "Verification complete: Different person detected."


@pytest.mark.parametrize(
    "detections, reason, status",
    [
        ([], FailureReason.NO_FACE, "No face detected! Please position yourself properly and try again"),
        (
            [make_detection(0.0), make_detection(0.5)],
            FailureReason.MULTIPLE_FACES,
            "Multiple faces detected! Please ensure only your face is in the frame.",
        ),
        (
            [make_detection(0.0, landmarks=TURNED)],
            FailureReason.NOT_FACING_CAMERA,
            "Please look directly at the screen before capturing your face.",
        ),
    ],
)
def test_capture_rejections(detections, reason, status):
    session = VerificationSession(StubDetector(detections))
    outcome = session.capture_face(FRAME)
    assert not outcome.success
    assert outcome.reason is reason
    assert outcome.status_message == status
    assert session.state.status_message == status
    assert not session.is_enrolled()


def test_capture_flags_follow_frames():
    session = VerificationSession(
        StubDetector(
            [make_detection(0.0, landmarks=TURNED)],
            [make_detection(0.0), make_detection(0.2)],
            [make_detection(0.0)],
        )
    )
    session.capture_face(FRAME)
    assert session.state.looking_at_screen is False
    assert session.state.multiple_faces_detected is False

    session.capture_face(FRAME)
    assert session.state.multiple_faces_detected is True

    session.capture_face(FRAME)
    assert session.state.looking_at_screen is True
    assert session.state.multiple_faces_detected is True


def test_verify_face_requires_enrollment():
    detector = StubDetector([make_detection()])
    session = VerificationSession(detector)
    assert session.verify_face(FRAME) is None
    assert session.state.status_message == "Please capture your initial face first"
    assert detector.calls == 0


@pytest.mark.parametrize(
    "detections, status",
    [
        ([], "Verification failed: No face detected."),
        ([make_detection(0.0), make_detection(0.0)], "Verification failed: Multiple faces detected."),
        ([make_detection(0.0, landmarks=TURNED)], "Verification failed: Not looking at screen."),
    ],
)
def test_verify_face_capture_failures_produce_verdicts(detections, status):
    session = VerificationSession(StubDetector([make_detection(0.0)], detections))
    session.capture_face(FRAME)
    verdict = session.verify_face(FRAME)
    assert verdict is not None
    assert not verdict.is_match
    assert verdict.distance is None
    assert session.state.status_message == status


def test_detector_failure_during_capture_is_reported():
    session = VerificationSession(FailingDetector())
    outcome = session.capture_face(FRAME)
    assert not outcome.success
    assert outcome.status_message == "Failed at detecting face."
    assert isinstance(outcome.error, RuntimeError)


def test_detector_failure_during_verify_is_reported():
    session = VerificationSession(StubDetector([make_detection(0.0)]))
    session.capture_face(FRAME)
    session.detector = FailingDetector()
    assert session.verify_face(FRAME) is None
    assert session.state.status_message == "Error at verifying the face."


def test_core_enroll_and_verify_raise():
    session = VerificationSession(
        StubDetector([], [], [make_detection(), make_detection()], [make_detection()])
    )
    with pytest.raises(NotEnrolledError):
        session.verify(FRAME)
    with pytest.raises(NoFaceError):
        session.enroll(FRAME)
    with pytest.raises(MultipleFacesError):
        session.enroll(FRAME)
    session.enroll(FRAME)
    assert session.is_enrolled()


def test_config_threshold_reaches_engine():
    config = VerificationConfig(distance_threshold=0.05)
    session = VerificationSession(StubDetector([make_detection(0.0)], [make_detection(0.1)]), config=config)
    session.capture_face(FRAME)
    verdict = session.verify_face(FRAME)
    assert verdict is not None and not verdict.is_match


def test_reset_clears_enrollment_and_state():
    session = VerificationSession(StubDetector([make_detection(0.0), make_detection(0.1)]))
    session.capture_face(FRAME)
    assert session.state.multiple_faces_detected

    session.reset()
    assert not session.is_enrolled()
    assert session.state.multiple_faces_detected is False
    assert session.verify_face(FRAME) is None


def make_wide_detection() -> Detection:
    return Detection(landmarks=FRONTAL, descriptor=np.zeros(512, dtype=np.float32))


def test_descriptor_length_mismatch_during_verify_is_reported():
    session = VerificationSession(StubDetector([make_detection(0.0)], [make_wide_detection()]))
    session.capture_face(FRAME)

    assert session.verify_face(FRAME) is None
    assert session.state.status_message == "Error at verifying the face."
    assert session.state.verdict is None
    assert session.is_enrolled()


def test_unexpected_enroll_failure_is_reported():
    class BrokenEngine(VerificationEngine):
        def enroll(self, classification, is_frontal):
            raise ValueError("corrupt descriptor")

    session = VerificationSession(StubDetector([make_detection(0.0)]), engine=BrokenEngine())
    outcome = session.capture_face(FRAME)

    assert not outcome.success
    assert outcome.status_message == "Failed at detecting face."
    assert isinstance(outcome.error, ValueError)
    assert session.state.status_message == "Failed at detecting face."


def test_initial_status_is_ready_message():
    session = VerificationSession(StubDetector())
    assert session.state.status_message == "Models loaded successfully, you can now capture face."
