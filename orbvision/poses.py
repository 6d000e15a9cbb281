"""Camera poses for publishing: world positions, orientations and recorded paths."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

import numpy as np

from orbvision.geometry import quaternion_to_matrix, to_quaternion

WORLD_FRAME = "/world"


@dataclass(frozen=True)
class Pose:
    """A position and an orientation quaternion ordered as (x, y, z, w).

    A pose that has never been set has a zero quaternion.
    """

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    frame_id: str = ""


def _is_empty(tcw) -> bool:
    return tcw is None or np.asarray(tcw).size == 0


def _check_transform(tcw) -> np.ndarray:
    matrix = np.asarray(tcw, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] < 3 or matrix.shape[1] != 4:
        raise ValueError(f"expected a 3x4 or 4x4 transform, got shape {matrix.shape}")
    return matrix


def _pose_matrix(pose: Pose) -> np.ndarray:
    matrix = np.eye(4)
    matrix[:3, :3] = quaternion_to_matrix(pose.orientation).astype(np.float64)
    matrix[:3, 3] = pose.position
    return matrix


def _pose_from_matrix(matrix: np.ndarray, frame_id: str) -> Pose:
    position = tuple(float(v) for v in matrix[:3, 3])
    orientation = tuple(to_quaternion(matrix[:3, :3]))
    return Pose(position=position, orientation=orientation, frame_id=frame_id)


def pose_from_tcw(tcw) -> Pose:
    """Return the camera pose in the world frame from a world-to-camera transform."""
    matrix = _check_transform(tcw)
    rwc = matrix[:3, :3].T
    twc = -rwc @ matrix[:3, 3]
    world = np.eye(4)
    world[:3, :3] = rwc
    world[:3, 3] = twc
    return _pose_from_matrix(world, WORLD_FRAME)


def mono_position(tcw) -> np.ndarray:
    """Return the translation column of a pose, taking a missing pose as identity."""
    if _is_empty(tcw):
        return np.zeros(3, dtype=np.float32)
    matrix = _check_transform(tcw)
    return matrix[:3, 3].astype(np.float32)


class GroundTruthAligner:
    """Expresses ground-truth poses relative to the first one received."""

    def __init__(self) -> None:
        self._initial: np.ndarray | None = None

    @property
    def has_initial(self) -> bool:
        return self._initial is not None

    def align(self, pose: Pose) -> Pose:
        """Return the pose relative to the first aligned pose."""
        matrix = _pose_matrix(pose)
        if self._initial is None:
            self._initial = matrix
        relative = np.linalg.inv(self._initial) @ matrix
        return _pose_from_matrix(relative, pose.frame_id)


@dataclass
class PathRecorder:
    """Accumulates the estimated and the ground-truth camera paths."""

    vision_path: list[Pose] = field(default_factory=list)
    truth_path: list[Pose] = field(default_factory=list)
    vision_pose: Pose = field(default_factory=Pose)

    def record_vision(self, tcw) -> Pose:
        """Add the pose of a tracked frame; a missing pose keeps the previous one.

        Returns the current vision pose, which is what gets published.
        """
        if not _is_empty(tcw):
            self.vision_pose = pose_from_tcw(tcw)
            self.vision_path.append(self.vision_pose)
        return self.vision_pose

    def record_truth(self, pose: Pose) -> None:
        """Add the latest ground-truth pose to the truth path."""
        self.truth_path.append(replace(pose))