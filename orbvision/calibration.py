"""Reading camera settings files in the OpenCV YAML format."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import yaml

_DTYPES = {
    "u": np.uint8,
    "c": np.int8,
    "w": np.uint16,
    "s": np.int16,
    "i": np.int32,
    "f": np.float32,
    "d": np.float64,
}


class _OpenCVLoader(yaml.SafeLoader):
    """A YAML loader that understands OpenCV matrix nodes."""


def _construct_matrix(loader: yaml.SafeLoader, node: yaml.Node) -> np.ndarray:
    mapping = loader.construct_mapping(node, deep=True)
    try:
        rows = int(mapping["rows"])
        cols = int(mapping["cols"])
        data = mapping["data"]
    except KeyError as exc:
        raise ValueError(f"opencv-matrix is missing {exc.args[0]!r}") from None
    dtype = _DTYPES.get(str(mapping.get("dt", "d")), np.float64)
    values = np.asarray(data, dtype=dtype)
    if values.size != rows * cols:
        raise ValueError(
            f"opencv-matrix holds {values.size} values for a {rows}x{cols} matrix"
        )
    return values.reshape(rows, cols)


_OpenCVLoader.add_constructor("tag:yaml.org,2002:opencv-matrix", _construct_matrix)


def read_opencv_yaml(path) -> dict:
    """Read an OpenCV YAML settings file into a dict; matrices become numpy arrays."""
    text = Path(path).read_text(encoding="utf-8")
    lines = [line for line in text.splitlines() if not line.startswith("%YAML")]
    document = yaml.load("\n".join(lines), Loader=_OpenCVLoader)
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"{path}: the settings file must hold a mapping")
    return document


@dataclass(frozen=True)
class CameraSettings:
    """Pinhole intrinsics, distortion and stream settings of a camera."""

    fx: float
    fy: float
    cx: float
    cy: float
    k1: float = 0.0
    k2: float = 0.0
    p1: float = 0.0
    p2: float = 0.0
    k3: float = 0.0
    fps: float = 0.0
    rgb: bool = False

    def camera_matrix(self) -> np.ndarray:
        """Return the 3x3 single-precision camera matrix K."""
        k = np.eye(3, dtype=np.float32)
        k[0, 0] = self.fx
        k[1, 1] = self.fy
        k[0, 2] = self.cx
        k[1, 2] = self.cy
        return k

    def distortion(self) -> np.ndarray:
        """Return k1 k2 p1 p2, followed by k3 when it is not zero."""
        coeffs = [self.k1, self.k2, self.p1, self.p2]
        if self.k3 != 0:
            coeffs.append(self.k3)
        return np.array(coeffs, dtype=np.float32)


def _number(settings: dict, key: str, default: float = 0.0) -> float:
    value = settings.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"setting {key!r} must be a number, got {value!r}") from None


def load_settings(path) -> CameraSettings:
    """Load the Camera.* entries of a settings file."""
    settings = read_opencv_yaml(path)
    for key in ("Camera.fx", "Camera.fy", "Camera.cx", "Camera.cy"):
        if key not in settings:
            raise ValueError(f"{path}: missing setting {key!r}")
    return CameraSettings(
        fx=_number(settings, "Camera.fx"),
        fy=_number(settings, "Camera.fy"),
        cx=_number(settings, "Camera.cx"),
        cy=_number(settings, "Camera.cy"),
        k1=_number(settings, "Camera.k1"),
        k2=_number(settings, "Camera.k2"),
        p1=_number(settings, "Camera.p1"),
        p2=_number(settings, "Camera.p2"),
        k3=_number(settings, "Camera.k3"),
        fps=_number(settings, "Camera.fps"),
        rgb=bool(int(_number(settings, "Camera.RGB"))),
    )