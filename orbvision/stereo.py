"""Stereo sequences, stereo rectification maps and bilinear image remapping."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from orbvision.calibration import read_opencv_yaml

_EUROC_NANOSECONDS = 1e9
_MATRIX_KEYS = ("K", "P", "R", "D")


@dataclass
class StereoSequence:
    """Left and right image paths of a stereo sequence with timestamps in seconds."""

    left_images: list[Path] = field(default_factory=list)
    right_images: list[Path] = field(default_factory=list)
    timestamps: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.left_images) != len(self.right_images):
            raise ValueError("different number of left and right images")
        if len(self.left_images) != len(self.timestamps):
            raise ValueError("a stereo sequence needs one timestamp per image pair")

    def __len__(self) -> int:
        return len(self.left_images)

    def __iter__(self) -> Iterator[tuple[Path, Path, float]]:
        return iter(zip(self.left_images, self.right_images, self.timestamps))


def _read_lines(path) -> list[str]:
    return Path(path).read_text(encoding="utf-8").splitlines()


def _leading_number(line: str, path) -> float:
    fields = line.split()
    try:
        return float(fields[0])
    except (IndexError, ValueError):
        raise ValueError(f"{path}: expected a number in line {line!r}") from None


def load_euroc_stereo(left_path, right_path, times_path) -> StereoSequence:
    """Read a EuRoC times file; each line names an image pair and gives its time in ns."""
    left = Path(left_path)
    right = Path(right_path)
    sequence = StereoSequence()
    for line in _read_lines(times_path):
        if not line:
            continue
        timestamp = _leading_number(line, times_path) / _EUROC_NANOSECONDS
        sequence.left_images.append(left / f"{line}.png")
        sequence.right_images.append(right / f"{line}.png")
        sequence.timestamps.append(timestamp)
    return sequence


def load_kitti_stereo(sequence_path) -> StereoSequence:
    """Read times.txt of a KITTI sequence; images are image_0 and image_1/NNNNNN.png."""
    root = Path(sequence_path)
    times_file = root / "times.txt"
    timestamps = [
        _leading_number(line, times_file) for line in _read_lines(times_file) if line
    ]
    names = [f"{i:06d}.png" for i in range(len(timestamps))]
    return StereoSequence(
        left_images=[root / "image_0" / name for name in names],
        right_images=[root / "image_1" / name for name in names],
        timestamps=timestamps,
    )


def _distortion_coefficients(distortion) -> tuple[float, ...]:
    if distortion is None:
        coeffs: list[float] = []
    else:
        coeffs = [float(v) for v in np.asarray(distortion, dtype=np.float64).ravel()]
    if len(coeffs) not in (0, 4, 5, 8):
        raise ValueError("distortion needs 4, 5 or 8 coefficients")
    return tuple(coeffs + [0.0] * (8 - len(coeffs)))


def init_undistort_rectify_map(camera_matrix, distortion, rectification, projection, size):
    """Compute the pixel maps that undistort and rectify an image.

    ``size`` is (width, height). For every pixel of the rectified image the maps
    give the (x, y) position to sample in the distorted input image.
    """
    k = np.asarray(camera_matrix, dtype=np.float64)
    if k.shape != (3, 3):
        raise ValueError(f"the camera matrix must be 3x3, got shape {k.shape}")
    r = np.eye(3) if rectification is None else np.asarray(rectification, dtype=np.float64)
    if r.shape != (3, 3):
        raise ValueError(f"the rectification must be 3x3, got shape {r.shape}")
    if projection is None:
        new_k = k
    else:
        p = np.asarray(projection, dtype=np.float64)
        if p.ndim != 2 or p.shape[0] != 3 or p.shape[1] not in (3, 4):
            raise ValueError(f"the projection must be 3x3 or 3x4, got shape {p.shape}")
        new_k = p[:, :3]
    width, height = (int(v) for v in size)
    if width <= 0 or height <= 0:
        raise ValueError("the map size must be positive")

    k1, k2, p1, p2, k3, k4, k5, k6 = _distortion_coefficients(distortion)
    fx, fy, cx, cy = k[0, 0], k[1, 1], k[0, 2], k[1, 2]
    inverse = np.linalg.inv(new_k @ r)

    u, v = np.meshgrid(np.arange(width, dtype=np.float64), np.arange(height, dtype=np.float64))
    pixels = np.stack((u, v, np.ones_like(u)), axis=-1)
    rays = pixels @ inverse.T
    x = rays[..., 0] / rays[..., 2]
    y = rays[..., 1] / rays[..., 2]

    x2, y2 = x * x, y * y
    r2 = x2 + y2
    xy2 = 2.0 * x * y
    kr = (1.0 + ((k3 * r2 + k2) * r2 + k1) * r2) / (1.0 + ((k6 * r2 + k5) * r2 + k4) * r2)
    map_x = fx * (x * kr + p1 * xy2 + p2 * (r2 + 2.0 * x2)) + cx
    map_y = fy * (y * kr + p1 * (r2 + 2.0 * y2) + p2 * xy2) + cy
    return map_x.astype(np.float32), map_y.astype(np.float32)


def remap_linear(image, map_x, map_y) -> np.ndarray:
    """Sample an image at the mapped positions with bilinear interpolation.

    Positions outside the image read as zero.
    """
    src = np.asarray(image)
    mx = np.asarray(map_x, dtype=np.float64)
    my = np.asarray(map_y, dtype=np.float64)
    if mx.ndim != 2 or mx.shape != my.shape:
        raise ValueError("map_x and map_y must be 2-D arrays of the same shape")
    if src.ndim not in (2, 3):
        raise ValueError("the image must be 2-D or 3-D")
    height, width = src.shape[:2]
    data = src.astype(np.float64)

    finite = np.isfinite(mx) & np.isfinite(my)
    mx = np.where(finite, mx, -2.0)
    my = np.where(finite, my, -2.0)
    x0f = np.floor(mx)
    y0f = np.floor(my)
    ax = mx - x0f
    ay = my - y0f
    x0 = x0f.astype(np.int64)
    y0 = y0f.astype(np.int64)

    out = np.zeros(mx.shape + src.shape[2:], dtype=np.float64)
    corners = (
        (0, 0, (1.0 - ax) * (1.0 - ay)),
        (0, 1, ax * (1.0 - ay)),
        (1, 0, (1.0 - ax) * ay),
        (1, 1, ax * ay),
    )
    for dy, dx, weight in corners:
        xs = x0 + dx
        ys = y0 + dy
        valid = (xs >= 0) & (xs < width) & (ys >= 0) & (ys < height)
        sample = np.zeros_like(out)
        sample[valid] = data[ys[valid], xs[valid]]
        if src.ndim == 3:
            weight = weight[..., None]
        out += sample * weight

    if np.issubdtype(src.dtype, np.integer):
        info = np.iinfo(src.dtype)
        return np.clip(np.rint(out), info.min, info.max).astype(src.dtype)
    return out.astype(src.dtype)


@dataclass(frozen=True)
class StereoCalibration:
    """Intrinsics, distortion, rectification and projection of both stereo cameras.

    Sizes are (width, height).
    """

    left_k: np.ndarray
    left_d: np.ndarray
    left_r: np.ndarray
    left_p: np.ndarray
    left_size: tuple[int, int]
    right_k: np.ndarray
    right_d: np.ndarray
    right_r: np.ndarray
    right_p: np.ndarray
    right_size: tuple[int, int]

    def rectification_maps(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return the left x, left y, right x and right y rectification maps."""
        left_x, left_y = init_undistort_rectify_map(
            self.left_k, self.left_d, self.left_r, self.left_p[:3, :3], self.left_size
        )
        right_x, right_y = init_undistort_rectify_map(
            self.right_k, self.right_d, self.right_r, self.right_p[:3, :3], self.right_size
        )
        return left_x, left_y, right_x, right_y


def _missing() -> ValueError:
    return ValueError("calibration parameters to rectify stereo are missing")


def read_stereo_calibration(path) -> StereoCalibration:
    """Read the LEFT.* and RIGHT.* rectification parameters of a settings file."""
    settings = read_opencv_yaml(path)
    values: dict[str, object] = {}
    for side in ("LEFT", "RIGHT"):
        for key in _MATRIX_KEYS:
            matrix = settings.get(f"{side}.{key}")
            if not isinstance(matrix, np.ndarray) or matrix.size == 0:
                raise _missing()
            values[f"{side.lower()}_{key.lower()}"] = matrix.astype(np.float64)
        try:
            height = int(settings.get(f"{side}.height", 0))
            width = int(settings.get(f"{side}.width", 0))
        except (TypeError, ValueError):
            raise _missing() from None
        if height == 0 or width == 0:
            raise _missing()
        values[f"{side.lower()}_size"] = (width, height)
    return StereoCalibration(**values)


def parse_bool(text: str) -> bool:
    """Parse the words true or false, as given on a command line."""
    word = str(text).strip()
    if word == "true":
        return True
    if word == "false":
        return False
    raise ValueError(f"expected 'true' or 'false', got {text!r}")