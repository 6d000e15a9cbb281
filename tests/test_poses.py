import numpy as np
import pytest

from orbvision.geometry import quaternion_to_matrix
from orbvision.poses import (
    GroundTruthAligner,
    PathRecorder,
    Pose,
    mono_position,
    pose_from_tcw,
)


def _rotation_z(angle):
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def _transform(rotation, translation):
    t = np.eye(4)
    t[:3, :3] = rotation
    t[:3, 3] = translation
    return t


def test_identity_pose():
    pose = pose_from_tcw(np.eye(4))
    assert pose.position == pytest.approx((0.0, 0.0, 0.0))
    assert pose.orientation == pytest.approx((0.0, 0.0, 0.0, 1.0))
    assert pose.frame_id == "/world"


def test_translation_only_gives_negated_position():
    pose = pose_from_tcw(_transform(np.eye(3), [1.0, -2.0, 3.0]))
    assert pose.position == pytest.approx((-1.0, 2.0, -3.0))


def test_orientation_is_inverse_rotation():
    rotation = _rotation_z(0.7)
    pose = pose_from_tcw(_transform(rotation, [0.5, 0.2, -0.1]))
    recovered = quaternion_to_matrix(pose.orientation)
    assert np.allclose(recovered, rotation.T, atol=1e-5)


def test_camera_centre_maps_to_origin():
    rotation = _rotation_z(-0.4)
    translation = np.array([0.3, 1.2, -0.8])
    pose = pose_from_tcw(_transform(rotation, translation))
    centre = np.array(pose.position)
    assert np.allclose(rotation @ centre + translation, 0.0, atol=1e-9)


def test_pose_from_tcw_rejects_bad_shape():
    with pytest.raises(ValueError):
        pose_from_tcw(np.eye(3))


def test_mono_position_missing_pose_is_zero():
    assert np.array_equal(mono_position(None), np.zeros(3))
    assert np.array_equal(mono_position(np.empty((0, 0))), np.zeros(3))


def test_mono_position_reads_translation():
    position = mono_position(_transform(_rotation_z(0.3), [4.0, 5.0, 6.0]))
    assert position.tolist() == [4.0, 5.0, 6.0]


def test_aligner_first_pose_is_identity():
    aligner = GroundTruthAligner()
    first = Pose(position=(1.0, 2.0, 3.0), orientation=(0.0, 0.0, 0.0, 1.0), frame_id="/mocap")
    aligned = aligner.align(first)
    assert aligner.has_initial
    assert aligned.position == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)
    assert aligned.orientation == pytest.approx((0.0, 0.0, 0.0, 1.0), abs=1e-6)
    assert aligned.frame_id == "/mocap"


def test_aligner_relative_translation():
    aligner = GroundTruthAligner()
    identity = (0.0, 0.0, 0.0, 1.0)
    aligner.align(Pose(position=(1.0, 2.0, 3.0), orientation=identity))
    moved = aligner.align(Pose(position=(2.0, 2.0, 3.0), orientation=identity))
    assert moved.position == pytest.approx((1.0, 0.0, 0.0), abs=1e-9)


def test_aligner_relative_rotation_round_trip():
    aligner = GroundTruthAligner()
    initial = pose_from_tcw(_transform(_rotation_z(0.5), [0.1, 0.2, 0.3]))
    aligner.align(initial)
    again = aligner.align(initial)
    assert again.position == pytest.approx((0.0, 0.0, 0.0), abs=1e-5)
    assert np.allclose(quaternion_to_matrix(again.orientation), np.eye(3), atol=1e-5)


def test_recorder_skips_missing_pose():
    recorder = PathRecorder()
    published = recorder.record_vision(None)
    assert published == Pose()
    assert recorder.vision_path == []


def test_recorder_keeps_last_pose_when_lost():
    recorder = PathRecorder()
    first = recorder.record_vision(_transform(np.eye(3), [1.0, 0.0, 0.0]))
    again = recorder.record_vision(None)
    assert again == first
    assert len(recorder.vision_path) == 1
    assert first.frame_id == "/world"


def test_recorder_truth_path_grows():
    recorder = PathRecorder()
    truth = Pose(position=(1.0, 1.0, 1.0), orientation=(0.0, 0.0, 0.0, 1.0))
    recorder.record_truth(truth)
    recorder.record_truth(truth)
    assert recorder.truth_path == [truth, truth]