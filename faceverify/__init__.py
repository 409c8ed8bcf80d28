"""Reference-face enrollment and identity verification with a gaze gate."""

__all__ = [
    "config",
    "detectors",
    "errors",
    "frames",
    "geometry",
    "io_utils",
    "recognition",
    "selection",
    "session",
    "types",
]
