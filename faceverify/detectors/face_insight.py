"""InsightFace detector producing landmarks and identity descriptors per face."""

from __future__ import annotations

import logging
import os
import platform
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from faceverify.types import Detection, LandmarkSet

LOGGER = logging.getLogger("faceverify.detectors.face")


class FaceDetector(Protocol):
    def detect(self, frame: np.ndarray) -> List[Detection]:
        ...


def _default_providers() -> Tuple[str, ...]:
    """Choose default ONNX providers based on platform."""
    system = platform.system()
    machine = platform.machine().lower()
    if system == "Darwin" and machine in {"arm64", "aarch64"}:
        return ("CoreMLExecutionProvider", "CPUExecutionProvider")
    return ("CPUExecutionProvider",)


def face_to_detection(face) -> Detection:
    """Convert an InsightFace ``Face`` into a :class:`Detection`."""
    landmarks_68 = getattr(face, "landmark_3d_68", None)
    if landmarks_68 is None:
        raise ValueError("Face is missing 68-point landmarks; enable the landmark_3d_68 module")
    descriptor = getattr(face, "normed_embedding", None)
    if descriptor is None:
        raise ValueError("Face is missing an embedding; enable the recognition module")
    bbox = tuple(float(v) for v in face.bbox)
    return Detection(
        landmarks=LandmarkSet.from_68_points(np.asarray(landmarks_68)[:, :2]),
        descriptor=descriptor,
        bbox=bbox,  # type: ignore[arg-type]
        score=float(face.det_score),
    )


class InsightFaceDetector:
    """Wrapper around InsightFace FaceAnalysis with detection, 68-point landmarks and ArcFace."""

    def __init__(
        self,
        providers: Optional[Sequence[str]] = None,
        det_size: Tuple[int, int] = (640, 640),
        det_thresh: float = 0.5,
        model_name: str = "buffalo_l",
    ) -> None:
        os.environ.setdefault("OMP_NUM_THREADS", "2")
        os.environ.setdefault("MKL_NUM_THREADS", "2")
        os.environ.setdefault("ORT_INTRA_OP_NUM_THREADS", "2")
        try:
            from insightface.app import FaceAnalysis
        except ImportError as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "insightface is required for InsightFaceDetector. "
                "Install it via `pip install insightface`."
            ) from exc

        provider_list: Tuple[str, ...]
        if providers is None:
            provider_list = _default_providers()
        else:
            provider_list = tuple(providers)
        self.providers = provider_list
        self.det_size = tuple(det_size)
        self.det_thresh = det_thresh
        self.app = FaceAnalysis(
            name=model_name,
            allowed_modules=["detection", "landmark_3d_68", "recognition"],
            providers=list(provider_list),
        )
        self.app.prepare(ctx_id=0, det_size=self.det_size)
        LOGGER.info(
            "Loaded InsightFace %s det_size=%s det_thresh=%.2f providers=%s",
            model_name,
            self.det_size,
            det_thresh,
            provider_list,
        )

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Run detection, landmarks and recognition on a BGR frame."""
        faces = self.app.get(frame)
        detections: List[Detection] = []
        for face in faces:
            if float(face.det_score) < self.det_thresh:
                continue
            detections.append(face_to_detection(face))
        LOGGER.debug("Detected %d faces (%d raw)", len(detections), len(faces))
        return detections
