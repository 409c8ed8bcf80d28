"""Frame loading for the detector."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np


def load_frame(path: Path) -> np.ndarray:
    """Read an image as a BGR array (the layout InsightFace expects)."""
    image = cv2.imread(str(path))
    if image is None:
        raise FileNotFoundError(f"Unable to read image: {path}")
    return image
