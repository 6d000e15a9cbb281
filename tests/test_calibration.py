import numpy as np
import pytest

from orbvision.calibration import CameraSettings, load_settings, read_opencv_yaml

SETTINGS = """%YAML:1.0

Camera.fx: 517.306408
Camera.fy: 516.469215
Camera.cx: 318.643040
Camera.cy: 255.313989

Camera.k1: 0.262383
Camera.k2: -0.953104
Camera.p1: -0.005358
Camera.p2: 0.002628
Camera.k3: 1.163314

Camera.fps: 30.0
Camera.RGB: 1

LEFT.K: !!opencv-matrix
   rows: 2
   cols: 3
   dt: d
   data: [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
"""


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(SETTINGS, encoding="utf-8")
    return path


def test_read_scalars(settings_file):
    data = read_opencv_yaml(settings_file)
    assert data["Camera.fx"] == pytest.approx(517.306408)
    assert data["Camera.RGB"] == 1


def test_read_matrix(settings_file):
    data = read_opencv_yaml(settings_file)
    matrix = data["LEFT.K"]
    assert matrix.shape == (2, 3)
    assert matrix.dtype == np.float64
    assert matrix.tolist() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]


def test_matrix_size_mismatch(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(
        "%YAML:1.0\nM: !!opencv-matrix\n   rows: 2\n   cols: 2\n   dt: f\n   data: [1.0, 2.0]\n",
        encoding="utf-8",
    )
    with pytest.raises(ValueError):
        read_opencv_yaml(path)


def test_load_settings(settings_file):
    settings = load_settings(settings_file)
    assert settings.fx == pytest.approx(517.306408)
    assert settings.cy == pytest.approx(255.313989)
    assert settings.fps == pytest.approx(30.0)
    assert settings.rgb is True


def test_camera_matrix(settings_file):
    k = load_settings(settings_file).camera_matrix()
    assert k.dtype == np.float32
    assert k[0, 0] == pytest.approx(517.306408, rel=1e-6)
    assert k[1, 2] == pytest.approx(255.313989, rel=1e-6)
    assert k[2].tolist() == [0.0, 0.0, 1.0]
    assert k[0, 1] == 0.0


def test_distortion_with_k3(settings_file):
    coeffs = load_settings(settings_file).distortion()
    assert coeffs.shape == (5,)
    assert coeffs[4] == pytest.approx(1.163314, rel=1e-6)


def test_distortion_without_k3():
    settings = CameraSettings(fx=500.0, fy=500.0, cx=320.0, cy=240.0, k1=0.1, k2=0.2)
    coeffs = settings.distortion()
    assert coeffs.shape == (4,)
    assert coeffs[:2] == pytest.approx([0.1, 0.2])


def test_missing_intrinsic_raises(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text("%YAML:1.0\nCamera.fx: 500.0\nCamera.fy: 500.0\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


def test_optional_settings_default_to_zero(tmp_path):
    path = tmp_path / "minimal.yaml"
    path.write_text(
        "%YAML:1.0\nCamera.fx: 500.0\nCamera.fy: 501.0\nCamera.cx: 320.0\nCamera.cy: 240.0\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.rgb is False
    assert settings.fps == 0.0
    assert settings.distortion().tolist() == [0.0, 0.0, 0.0, 0.0]