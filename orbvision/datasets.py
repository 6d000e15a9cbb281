"""Image sequence listings of the EuRoC, KITTI and TUM datasets, and run timing."""

from __future__ import annotations

from collections.abc import Iterator, Sequence as SequenceABC
from dataclasses import dataclass, field
from pathlib import Path

_EUROC_NANOSECONDS = 1e9
_TUM_HEADER_LINES = 3


@dataclass
class Sequence:
    """Image paths of a monocular sequence with one timestamp (seconds) per image."""

    images: list[Path] = field(default_factory=list)
    timestamps: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.images) != len(self.timestamps):
            raise ValueError("a sequence needs one timestamp per image")

    def __len__(self) -> int:
        return len(self.images)

    def __iter__(self) -> Iterator[tuple[Path, float]]:
        return iter(zip(self.images, self.timestamps))


@dataclass
class RGBDSequence:
    """Colour and depth image names of an RGB-D sequence with their timestamps.

    The names are as written in the association file, relative to the sequence
    directory.
    """

    rgb_images: list[str] = field(default_factory=list)
    depth_images: list[str] = field(default_factory=list)
    timestamps: list[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.rgb_images) != len(self.depth_images):
            raise ValueError("different number of images for rgb and depth")
        if len(self.rgb_images) != len(self.timestamps):
            raise ValueError("an RGB-D sequence needs one timestamp per image pair")

    def __len__(self) -> int:
        return len(self.rgb_images)

    def __iter__(self) -> Iterator[tuple[str, str, float]]:
        return iter(zip(self.rgb_images, self.depth_images, self.timestamps))


@dataclass(frozen=True)
class TrackingStatistics:
    """Median and mean time spent tracking one frame, in seconds."""

    median: float
    mean: float


def _lines(path) -> list[str]:
    return Path(path).read_text(encoding="utf-8").splitlines()


def _number(token: str, path, line: str) -> float:
    try:
        return float(token)
    except ValueError:
        raise ValueError(f"{path}: expected a number in line {line!r}") from None


def load_euroc_mono(image_path, times_path) -> Sequence:
    """Read a EuRoC times file; each line names an image and gives its time in ns."""
    folder = Path(image_path)
    sequence = Sequence()
    for line in _lines(times_path):
        if not line:
            continue
        fields = line.split()
        if not fields:
            raise ValueError(f"{times_path}: expected a number in line {line!r}")
        sequence.images.append(folder / f"{line}.png")
        sequence.timestamps.append(
            _number(fields[0], times_path, line) / _EUROC_NANOSECONDS
        )
    return sequence


def load_kitti_mono(sequence_path) -> Sequence:
    """Read times.txt of a KITTI sequence; images are image_0/NNNNNN.png."""
    root = Path(sequence_path)
    times_file = root / "times.txt"
    timestamps = []
    for line in _lines(times_file):
        if not line:
            continue
        fields = line.split()
        if not fields:
            raise ValueError(f"{times_file}: expected a number in line {line!r}")
        timestamps.append(_number(fields[0], times_file, line))
    images = [root / "image_0" / f"{i:06d}.png" for i in range(len(timestamps))]
    return Sequence(images=images, timestamps=timestamps)


def load_tum_mono(sequence_path) -> Sequence:
    """Read rgb.txt of a TUM sequence, skipping its three header lines."""
    root = Path(sequence_path)
    listing = root / "rgb.txt"
    sequence = Sequence()
    for line in _lines(listing)[_TUM_HEADER_LINES:]:
        if not line:
            continue
        fields = line.split()
        if len(fields) < 2:
            raise ValueError(f"{listing}: expected a timestamp and a file in line {line!r}")
        sequence.timestamps.append(_number(fields[0], listing, line))
        sequence.images.append(root / fields[1])
    return sequence


def load_tum_rgbd(association_path) -> RGBDSequence:
    """Read a TUM association file: rgb time, rgb file, depth time, depth file."""
    sequence = RGBDSequence()
    for line in _lines(association_path):
        if not line:
            continue
        fields = line.split()
        if len(fields) < 4:
            raise ValueError(
                f"{association_path}: expected four fields in line {line!r}"
            )
        sequence.timestamps.append(_number(fields[0], association_path, line))
        sequence.rgb_images.append(fields[1])
        _number(fields[2], association_path, line)
        sequence.depth_images.append(fields[3])
    return sequence


def tracking_statistics(times: SequenceABC[float]) -> TrackingStatistics:
    """Return the median (upper middle) and mean of per-frame tracking times."""
    if not times:
        raise ValueError("no tracking times to summarise")
    ordered = sorted(float(t) for t in times)
    return TrackingStatistics(
        median=ordered[len(ordered) // 2], mean=sum(ordered) / len(ordered)
    )


def frame_wait(timestamps: SequenceABC[float], index: int, elapsed: float) -> float:
    """Seconds to wait after frame ``index`` so the sequence plays at its own rate."""
    count = len(timestamps)
    if not 0 <= index < count:
        raise IndexError(f"frame {index} is outside a sequence of {count}")
    gap = 0.0
    if index < count - 1:
        gap = timestamps[index + 1] - timestamps[index]
    elif index > 0:
        gap = timestamps[index] - timestamps[index - 1]
    return gap - elapsed if elapsed < gap else 0.0