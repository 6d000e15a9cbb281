[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "orbvision"
version = "0.1.0"
description = "Visual SLAM building blocks: camera geometry, pose conversions, tracking status display, AR planes, stereo rectification and dataset loaders."
requires-python = ">=3.10"
keywords = [
    "slam",
    "visual-odometry",
    "stereo",
    "rgbd",
    "computer-vision",
    "augmented-reality",
    "camera-calibration",
    "rectification",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy>=1.23",
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["orbvision"]

[tool.hatch.build.targets.sdist]
include = [
    "orbvision",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
