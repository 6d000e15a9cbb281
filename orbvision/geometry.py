"""Conversions between pose matrices, rotation matrices, quaternions and vectors."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np


def to_descriptor_vector(descriptors) -> list[np.ndarray]:
    """Split a descriptor matrix into a list with one row per descriptor."""
    matrix = np.asarray(descriptors)
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    return [row.copy() for row in matrix]


def to_se3(transform) -> tuple[np.ndarray, np.ndarray]:
    """Return the rotation and translation of a 4x4 (or 3x4) rigid transform."""
    matrix = np.asarray(transform, dtype=np.float64)
    if matrix.shape[0] < 3 or matrix.shape[1] < 4:
        raise ValueError(f"expected a 3x4 or 4x4 transform, got shape {matrix.shape}")
    return matrix[:3, :3].copy(), matrix[:3, 3].copy()


def se3_to_matrix(rotation, translation) -> np.ndarray:
    """Build a 4x4 single-precision homogeneous transform from R and t."""
    rot = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    trans = np.asarray(translation, dtype=np.float64).reshape(3)
    result = np.eye(4, dtype=np.float32)
    result[:3, :3] = rot
    result[:3, 3] = trans
    return result


def sim3_to_matrix(rotation, translation, scale) -> np.ndarray:
    """Build a 4x4 transform whose upper-left block is the scaled rotation."""
    rot = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    return se3_to_matrix(float(scale) * rot, translation)


def to_vector3d(value) -> np.ndarray:
    """Return a double-precision 3-vector from a point object or array."""
    if all(hasattr(value, name) for name in ("x", "y", "z")):
        return np.array([value.x, value.y, value.z], dtype=np.float64)
    flat = np.asarray(value, dtype=np.float64).ravel()
    if flat.size < 3:
        raise ValueError("a 3-vector needs at least three components")
    return flat[:3].copy()


def to_matrix3d(matrix) -> np.ndarray:
    """Return the upper-left 3x3 block of a matrix in double precision."""
    array = np.asarray(matrix, dtype=np.float64)
    if array.ndim != 2 or array.shape[0] < 3 or array.shape[1] < 3:
        raise ValueError(f"expected at least a 3x3 matrix, got shape {array.shape}")
    return array[:3, :3].copy()


def to_quaternion(matrix) -> list[float]:
    """Convert a rotation matrix to a quaternion ordered as [x, y, z, w]."""
    m = to_matrix3d(matrix)
    q = [0.0, 0.0, 0.0]
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        t = math.sqrt(trace + 1.0)
        w = 0.5 * t
        t = 0.5 / t
        q = [(m[2, 1] - m[1, 2]) * t, (m[0, 2] - m[2, 0]) * t, (m[1, 0] - m[0, 1]) * t]
    else:
        i = 0
        if m[1, 1] > m[0, 0]:
            i = 1
        if m[2, 2] > m[i, i]:
            i = 2
        j = (i + 1) % 3
        k = (j + 1) % 3
        t = math.sqrt(m[i, i] - m[j, j] - m[k, k] + 1.0)
        q[i] = 0.5 * t
        t = 0.5 / t
        w = (m[k, j] - m[j, k]) * t
        q[j] = (m[j, i] + m[i, j]) * t
        q[k] = (m[k, i] + m[i, k]) * t
    return [float(np.float32(v)) for v in (*q, w)]


def quaternion_to_matrix(quaternion: Sequence[float]) -> np.ndarray:
    """Convert a quaternion ordered as [x, y, z, w] to a 3x3 rotation matrix."""
    if len(quaternion) != 4:
        raise ValueError("a quaternion needs four components [x, y, z, w]")
    x, y, z, w = (float(v) for v in quaternion)
    tx, ty, tz = 2.0 * x, 2.0 * y, 2.0 * z
    twx, twy, twz = tx * w, ty * w, tz * w
    txx, txy, txz = tx * x, ty * x, tz * x
    tyy, tyz, tzz = ty * y, tz * y, tz * z
    return np.array(
        [
            [1.0 - (tyy + tzz), txy - twz, txz + twy],
            [txy + twz, 1.0 - (txx + tzz), tyz - twx],
            [txz - twy, tyz + twx, 1.0 - (txx + tyy)],
        ],
        dtype=np.float32,
    )