"""Augmented-reality helpers: plane detection, plane frames and viewer state."""

from __future__ import annotations

import math
import random
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

from orbvision.camera import KeyPoint

_SMALL_ANGLE = 1e-4
_MIN_PLANE_POINTS = 50
_MIN_OBSERVATIONS = 5
_UP = np.array([0.0, 1.0, 0.0])

RED = (255, 0, 0)
GREEN = (0, 255, 0)


class MapPointLike(Protocol):
    """What plane fitting needs from a 3D map point."""

    world_pos: np.ndarray
    observations: int
    is_bad: bool


def exp_so3(vector) -> np.ndarray:
    """Exponential map from an axis-angle 3-vector to a rotation matrix."""
    v = np.asarray(vector, dtype=np.float64).ravel()
    if v.size != 3:
        raise ValueError("exp_so3 needs a 3-vector")
    x, y, z = v
    identity = np.eye(3)
    d2 = x * x + y * y + z * z
    d = math.sqrt(d2)
    w = np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])
    if d < _SMALL_ANGLE:
        return identity + w + 0.5 * (w @ w)
    return identity + w * math.sin(d) / d + (w @ w) * (1.0 - math.cos(d)) / d2


def gl_matrix(transform) -> np.ndarray:
    """Flatten a 4x4 (or 3x4) rigid transform into a 16-element column-major array."""
    t = np.asarray(transform, dtype=np.float64)
    if t.ndim != 2 or t.shape[0] < 3 or t.shape[1] != 4:
        raise ValueError(f"expected a 3x4 or 4x4 transform, got shape {t.shape}")
    full = np.eye(4)
    full[:3, :] = t[:3, :]
    full[3, :] = (0.0, 0.0, 0.0, 1.0)
    return full.T.ravel().copy()


def _plane_rotation(normal: np.ndarray, up_angle: float) -> np.ndarray:
    v = np.cross(_UP, normal)
    s = float(np.linalg.norm(v))
    c = float(_UP @ normal)
    angle = math.atan2(s, c)
    if s > 1e-12:
        axis = v * angle / s
    elif c >= 0:
        axis = np.zeros(3)
    else:
        axis = np.array([math.pi, 0.0, 0.0])
    return exp_so3(axis) @ exp_so3(_UP * up_angle)


def _random_up_angle(rng: random.Random) -> float:
    return -3.14 / 2 + rng.random() * 3.14


class Plane:
    """A plane fitted to map points, with a frame whose y axis is the plane normal."""

    def __init__(
        self,
        map_points: Sequence[MapPointLike],
        tcw,
        rng: random.Random | None = None,
    ) -> None:
        rng = rng or random.Random()
        self.map_points = list(map_points)
        self.tcw = np.array(tcw, dtype=np.float64, copy=True)
        self.up_angle = _random_up_angle(rng)
        self.xc: np.ndarray | None = None
        self.normal = np.zeros(3)
        self.origin = np.zeros(3)
        self.tpw = np.eye(4)
        self.gl_tpw = gl_matrix(self.tpw)
        self.recompute()

    def _set_frame(self) -> None:
        self.tpw = np.eye(4)
        self.tpw[:3, :3] = _plane_rotation(self.normal, self.up_angle)
        self.tpw[:3, 3] = self.origin
        self.gl_tpw = gl_matrix(self.tpw)

    def recompute(self) -> None:
        """Refit the plane to all of its map points that are still good."""
        points = [
            np.asarray(mp.world_pos, dtype=np.float64).ravel()[:3]
            for mp in self.map_points
            if not mp.is_bad
        ]
        if not points:
            raise ValueError("the plane has no good map points to fit")
        xyz = np.vstack(points)
        a_matrix = np.hstack((xyz, np.ones((len(points), 1))))
        _, _, vt = np.linalg.svd(a_matrix, full_matrices=True)
        abc = vt[3, :3].copy()
        self.origin = xyz.mean(axis=0)
        f = 1.0 / math.sqrt(float(abc @ abc))

        if self.xc is None:
            rotation = self.tcw[:3, :3]
            camera_centre = -rotation.T @ self.tcw[:3, 3]
            self.xc = camera_centre - self.origin
        if float(self.xc @ abc) > 0:
            abc = -abc

        self.normal = abc * f
        self._set_frame()

    @classmethod
    def from_normal(cls, normal, origin, rng: random.Random | None = None) -> "Plane":
        """Build a plane directly from a normal and an origin point."""
        rng = rng or random.Random()
        plane = cls.__new__(cls)
        plane.map_points = []
        plane.tcw = None
        plane.xc = None
        plane.normal = np.asarray(normal, dtype=np.float64).ravel()[:3].copy()
        plane.origin = np.asarray(origin, dtype=np.float64).ravel()[:3].copy()
        if not np.any(plane.normal):
            raise ValueError("the plane normal must not be zero")
        plane.up_angle = _random_up_angle(rng)
        plane._set_frame()
        return plane


def detect_plane(
    tcw,
    map_points: Sequence[MapPointLike | None],
    iterations: int = 50,
    rng: random.Random | None = None,
) -> Plane | None:
    """Fit a plane to well-observed map points by RANSAC; None when none is found."""
    rng = rng or random.Random()
    candidates = [
        mp for mp in map_points if mp is not None and mp.observations > _MIN_OBSERVATIONS
    ]
    n = len(candidates)
    if n < _MIN_PLANE_POINTS:
        return None
    points = np.vstack(
        [np.asarray(mp.world_pos, dtype=np.float64).ravel()[:3] for mp in candidates]
    )
    homogeneous = np.hstack((points, np.ones((n, 1))))

    best_dist = 1e10
    best_distances: np.ndarray | None = None
    nth = max(int(0.2 * n), 20)
    for _ in range(iterations):
        available = list(range(n))
        chosen = []
        for _ in range(3):
            pick = rng.randint(0, len(available) - 1)
            chosen.append(available[pick])
            available[pick] = available[-1]
            available.pop()
        _, _, vt = np.linalg.svd(homogeneous[chosen], full_matrices=True)
        plane = vt[3]
        f = 1.0 / math.sqrt(float(plane @ plane))
        distances = np.abs(homogeneous @ plane) * f
        median = float(np.sort(distances)[nth])
        if median < best_dist:
            best_dist = median
            best_distances = distances

    if best_distances is None:
        return None
    threshold = 1.4 * best_dist
    inliers = [mp for mp, d in zip(candidates, best_distances) if d < threshold]
    if not inliers:
        return None
    return Plane(inliers, tcw, rng)


def status_message(status: int, localization_mode: bool) -> tuple[str, tuple[int, int, int]] | None:
    """Text and RGB colour shown over the AR image for a tracking status."""
    mode = "LOCALIZATION" if localization_mode else "SLAM"
    if status == 1:
        return "SLAM NOT INITIALIZED", RED
    if status == 2:
        return f"{mode} ON", GREEN
    if status == 3:
        return f"{mode} LOST", RED
    return None


def grid_lines(
    ndivs: int, ndivsize: float
) -> list[tuple[tuple[float, float, float], tuple[float, float, float]]]:
    """Line segments of a square grid in the x-z plane centred at the origin."""
    if ndivs < 0:
        raise ValueError("the number of grid divisions must not be negative")
    low = -ndivs * ndivsize
    high = ndivs * ndivsize
    lines = []
    for i in range(2 * ndivs + 1):
        offset = low + ndivsize * i
        lines.append(((offset, 0.0, low), (offset, 0.0, high)))
        lines.append(((low, 0.0, offset), (high, 0.0, offset)))
    return lines


@dataclass
class ARFrame:
    """A snapshot of the last processed image and its tracking result."""

    image: np.ndarray | None = None
    tcw: np.ndarray | None = None
    status: int = 0
    keypoints: list[KeyPoint] = field(default_factory=list)
    map_points: list[object | None] = field(default_factory=list)


class ARFrameBuffer:
    """Thread-safe hand-over of the latest image and pose to the AR viewer."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._frame = ARFrame()

    def set(self, image, tcw, status, keypoints, map_points) -> None:
        """Store copies of the latest image, pose and tracked points."""
        frame = ARFrame(
            image=None if image is None else np.array(image, copy=True),
            tcw=None if tcw is None else np.array(tcw, copy=True),
            status=int(status),
            keypoints=list(keypoints),
            map_points=list(map_points),
        )
        with self._lock:
            self._frame = frame

    def get(self) -> ARFrame:
        """Return copies of the stored image, pose and tracked points."""
        with self._lock:
            frame = self._frame
            return ARFrame(
                image=None if frame.image is None else frame.image.copy(),
                tcw=None if frame.tcw is None else frame.tcw.copy(),
                status=frame.status,
                keypoints=list(frame.keypoints),
                map_points=list(frame.map_points),
            )