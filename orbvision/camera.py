"""Pinhole camera model, scale pyramid, distortion removal and feature grid."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

import numpy as np

DEFAULT_GRID_COLS = 64
DEFAULT_GRID_ROWS = 48
_UNDISTORT_ITERATIONS = 5


@dataclass(frozen=True)
class KeyPoint:
    """An image feature location with its pyramid level."""

    x: float
    y: float
    size: float = 31.0
    angle: float = -1.0
    response: float = 0.0
    octave: int = 0


@dataclass(frozen=True)
class ScalePyramid:
    """Scale factors and level variances of an image pyramid."""

    levels: int
    scale_factor: float
    log_scale_factor: float
    scale_factors: tuple[float, ...]
    level_sigma2: tuple[float, ...]
    inv_scale_factors: tuple[float, ...]
    inv_level_sigma2: tuple[float, ...]


def build_scale_pyramid(levels: int, scale_factor: float) -> ScalePyramid:
    """Compute the per-level scale factors and sigmas for a pyramid."""
    if levels < 1:
        raise ValueError("a pyramid needs at least one level")
    if scale_factor <= 0:
        raise ValueError("the scale factor must be positive")
    factors = [1.0]
    sigma2 = [1.0]
    for _ in range(1, levels):
        factors.append(factors[-1] * scale_factor)
        sigma2.append(factors[-1] * factors[-1])
    return ScalePyramid(
        levels=levels,
        scale_factor=scale_factor,
        log_scale_factor=math.log(scale_factor),
        scale_factors=tuple(factors),
        level_sigma2=tuple(sigma2),
        inv_scale_factors=tuple(1.0 / f for f in factors),
        inv_level_sigma2=tuple(1.0 / s for s in sigma2),
    )


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


@dataclass(frozen=True)
class ImageBounds:
    """The undistorted image rectangle and the feature grid laid over it."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    grid_cols: int = DEFAULT_GRID_COLS
    grid_rows: int = DEFAULT_GRID_ROWS

    def __post_init__(self) -> None:
        if self.max_x <= self.min_x or self.max_y <= self.min_y:
            raise ValueError("image bounds must have a positive width and height")

    @property
    def grid_element_width_inv(self) -> float:
        return self.grid_cols / (self.max_x - self.min_x)

    @property
    def grid_element_height_inv(self) -> float:
        return self.grid_rows / (self.max_y - self.min_y)

    def cell_of(self, x: float, y: float) -> tuple[int, int] | None:
        """Return the grid cell holding (x, y), or None when it falls outside."""
        pos_x = _round_half_away((x - self.min_x) * self.grid_element_width_inv)
        pos_y = _round_half_away((y - self.min_y) * self.grid_element_height_inv)
        if not (0 <= pos_x < self.grid_cols and 0 <= pos_y < self.grid_rows):
            return None
        return pos_x, pos_y


@dataclass(frozen=True)
class Camera:
    """Pinhole intrinsics with radial-tangential distortion (k1 k2 p1 p2 [k3 ...])."""

    fx: float
    fy: float
    cx: float
    cy: float
    distortion: tuple[float, ...] = field(default=(0.0, 0.0, 0.0, 0.0))

    def __post_init__(self) -> None:
        coeffs = tuple(float(v) for v in self.distortion)
        if len(coeffs) not in (4, 5, 8):
            raise ValueError("distortion needs 4, 5 or 8 coefficients")
        object.__setattr__(self, "distortion", coeffs)

    @property
    def invfx(self) -> float:
        return 1.0 / self.fx

    @property
    def invfy(self) -> float:
        return 1.0 / self.fy

    @property
    def is_distorted(self) -> bool:
        return self.distortion[0] != 0.0

    def intrinsics(self) -> np.ndarray:
        """Return the 3x3 camera matrix K."""
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]],
            dtype=np.float32,
        )

    def undistort_points(self, points) -> np.ndarray:
        """Remove lens distortion from pixel coordinates, keeping the same K."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        coeffs = list(self.distortion) + [0.0] * (8 - len(self.distortion))
        k1, k2, p1, p2, k3, k4, k5, k6 = coeffs
        x0 = (pts[:, 0] - self.cx) * self.invfx
        y0 = (pts[:, 1] - self.cy) * self.invfy
        x, y = x0.copy(), y0.copy()
        for _ in range(_UNDISTORT_ITERATIONS):
            r2 = x * x + y * y
            icdist = (1.0 + ((k6 * r2 + k5) * r2 + k4) * r2) / (
                1.0 + ((k3 * r2 + k2) * r2 + k1) * r2
            )
            delta_x = 2.0 * p1 * x * y + p2 * (r2 + 2.0 * x * x)
            delta_y = p1 * (r2 + 2.0 * y * y) + 2.0 * p2 * x * y
            x = (x0 - delta_x) * icdist
            y = (y0 - delta_y) * icdist
        return np.column_stack((x * self.fx + self.cx, y * self.fy + self.cy))

    def image_bounds(self, width: float, height: float) -> ImageBounds:
        """Return the bounds of a width x height image after undistortion."""
        if not self.is_distorted:
            return ImageBounds(0.0, float(width), 0.0, float(height))
        corners = self.undistort_points(
            [[0.0, 0.0], [width, 0.0], [0.0, height], [width, height]]
        )
        return ImageBounds(
            min_x=float(min(corners[0, 0], corners[2, 0])),
            max_x=float(max(corners[1, 0], corners[3, 0])),
            min_y=float(min(corners[0, 1], corners[1, 1])),
            max_y=float(max(corners[2, 1], corners[3, 1])),
        )


def undistort_keypoints(camera: Camera, keypoints: Sequence[KeyPoint]) -> list[KeyPoint]:
    """Return the keypoints with their coordinates undistorted."""
    if not camera.is_distorted or not keypoints:
        return list(keypoints)
    corrected = camera.undistort_points([(kp.x, kp.y) for kp in keypoints])
    return [
        replace(kp, x=float(x), y=float(y)) for kp, (x, y) in zip(keypoints, corrected)
    ]


def assign_features_to_grid(
    bounds: ImageBounds, keypoints: Iterable[KeyPoint]
) -> list[list[list[int]]]:
    """Bucket keypoint indices into grid cells indexed as grid[col][row]."""
    grid: list[list[list[int]]] = [
        [[] for _ in range(bounds.grid_rows)] for _ in range(bounds.grid_cols)
    ]
    for index, kp in enumerate(keypoints):
        cell = bounds.cell_of(kp.x, kp.y)
        if cell is not None:
            grid[cell[0]][cell[1]].append(index)
    return grid