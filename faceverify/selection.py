"""Frame-level face candidate selection."""

from __future__ import annotations

from typing import Sequence

from faceverify.types import Detection, FrameClassification


def classify(detections: Sequence[Detection]) -> FrameClassification:
    """Classify a frame's detections as empty, ambiguous or a single usable face."""
    if not detections:
        return FrameClassification.empty()
    if len(detections) > 1:
        return FrameClassification.ambiguous(len(detections))
    return FrameClassification.usable(detections[0])
