# orbvision

Building blocks for feature-based visual SLAM, written on top of NumPy.

The package covers the geometric and bookkeeping side of a keyframe-based
tracker: pose and rotation conversions, a pinhole camera model with lens
distortion, the keypoint search grid, the tracking status overlay, plane
detection for augmented reality, stereo rectification, reading OpenCV-style
settings files, and loaders for the common benchmark dataset layouts
(EuRoC, KITTI, TUM).

## Modules

| Module | What it gives you |
| --- | --- |
| `orbvision.geometry` | Conversions between transforms, rotation/translation pairs, scaled-rotation matrices, quaternions and 3-vectors: `to_descriptor_vector`, `to_se3`, `se3_to_matrix`, `sim3_to_matrix`, `to_vector3d`, `to_matrix3d`, `to_quaternion`, `quaternion_to_matrix`. |
| `orbvision.camera` | `KeyPoint`; `Camera` with `intrinsics()`, `undistort_points()` and `image_bounds()`; `ScalePyramid` built by `build_scale_pyramid`; `ImageBounds.cell_of()`; `undistort_keypoints` and `assign_features_to_grid` (grid indexed as `grid[col][row]`, 64 x 48 cells by default). |
| `orbvision.status` | `TrackingState`, `FrameDrawer` (`update`, `draw_frame` returning a `DrawnFrame` with the marked BGR image and its status line) and `status_text`. |
| `orbvision.ar` | `exp_so3`, `gl_matrix` (column-major 16-element transform), RANSAC `detect_plane`, `Plane` (`recompute`, `Plane.from_normal`), `status_message`, `grid_lines` and the thread-safe `ARFrameBuffer` (`set`, `get`). |
| `orbvision.poses` | `Pose`, `pose_from_tcw`, `mono_position`, `GroundTruthAligner` (poses relative to the first one) and `PathRecorder` for estimated and reference paths. |
| `orbvision.calibration` | `read_opencv_yaml` for OpenCV YAML settings files (matrices become NumPy arrays) and `load_settings` returning `CameraSettings` with `camera_matrix()` and `distortion()`. |
| `orbvision.datasets` | `Sequence` and `RGBDSequence`; loaders `load_euroc_mono`, `load_kitti_mono`, `load_tum_mono`, `load_tum_rgbd`; `tracking_statistics` (median and mean) and `frame_wait` for real-time playback. |
| `orbvision.stereo` | `StereoSequence`, `load_euroc_stereo`, `load_kitti_stereo`, `StereoCalibration` read by `read_stereo_calibration` with `rectification_maps()`, `init_undistort_rectify_map`, `remap_linear` (bilinear) and `parse_bool`. |

## Examples

Converting a rotation to a quaternion and back:

```python
import numpy as np
from orbvision.geometry import to_quaternion, quaternion_to_matrix

rotation = np.eye(3, dtype=np.float32)
quaternion = to_quaternion(rotation)          # [x, y, z, w] -> [0, 0, 0, 1]
assert np.allclose(quaternion_to_matrix(quaternion), rotation)
```

Camera position and orientation in the world from a world-to-camera pose:

```python
import numpy as np
from orbvision.poses import pose_from_tcw

tcw = np.eye(4)
tcw[:3, 3] = (0.0, 0.0, 2.0)
pose = pose_from_tcw(tcw)                     # position (0, 0, -2), frame "/world"
```

Reading a KITTI sequence listing and summarising per-frame tracking times:

```python
from orbvision.datasets import load_kitti_mono, tracking_statistics

sequence = load_kitti_mono("sequences/00")    # reads sequences/00/times.txt
for image_path, timestamp in sequence:
    ...
stats = tracking_statistics([0.031, 0.028, 0.035])
print(stats.median, stats.mean)
```

Rectifying a stereo pair from an OpenCV settings file:

```python
from orbvision.stereo import read_stereo_calibration, remap_linear

calibration = read_stereo_calibration("EuRoC.yaml")
left_x, left_y, right_x, right_y = calibration.rectification_maps()
left_rectified = remap_linear(left_image, left_x, left_y)
```

Rotation from an axis-angle vector, as used when anchoring AR planes:

```python
import numpy as np
from orbvision.ar import exp_so3

rotation = exp_so3(np.array([0.0, np.pi / 2, 0.0]))
```

## Conventions

- Poses are world-to-camera transforms (`Tcw`), given as 4x4 (or 3x4)
  NumPy arrays; `se3_to_matrix` and `sim3_to_matrix` return `float32`.
- Quaternions are ordered `[x, y, z, w]`.
- Image sizes passed to the stereo functions are `(width, height)`.
- Bad input files and parameters raise exceptions (mostly `ValueError`).

## What the package does not do

It has no feature extractor, no per-image frame object, no descriptor
matching or stereo correspondence search, no map, keyframe database or
tracking loop, and no optimiser. It opens no windows and draws nothing on
screen: `FrameDrawer` and the AR helpers produce arrays, text and geometry
for a caller to display. It reads no images itself and installs no
commands; the dataset loaders only list image paths and timestamps.

## Running the tests

Install the package with its `test` extra and run `pytest`.