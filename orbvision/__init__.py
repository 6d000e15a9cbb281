"""Visual SLAM building blocks: geometry, camera model, status display, AR, poses, calibration, datasets and stereo."""

__version__ = "0.1.0"

__all__ = [
    "ar",
    "calibration",
    "camera",
    "datasets",
    "geometry",
    "poses",
    "status",
    "stereo",
]