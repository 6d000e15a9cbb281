"""Tracking state display: annotated frame image and status line."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from orbvision.camera import KeyPoint

GREEN = (0, 255, 0)
BLUE = (255, 0, 0)
_BOX_HALF_SIZE = 5.0
_DOT_RADIUS = 2


class TrackingState(IntEnum):
    SYSTEM_NOT_READY = -1
    NO_IMAGES_YET = 0
    NOT_INITIALIZED = 1
    OK = 2
    LOST = 3


@dataclass
class DrawnFrame:
    """A BGR image with tracking markers and the status line that goes with it."""

    image: np.ndarray
    text: str
    state: TrackingState
    tracked: int = 0
    tracked_vo: int = 0
    matches: list[tuple[tuple[float, float], tuple[float, float]]] = field(default_factory=list)


def status_text(
    state: TrackingState,
    only_tracking: bool,
    keyframes: int,
    map_points: int,
    tracked: int,
    tracked_vo: int,
) -> str:
    """Return the status line shown under the frame for a tracking state."""
    if state == TrackingState.NO_IMAGES_YET:
        return " WAITING FOR IMAGES"
    if state == TrackingState.NOT_INITIALIZED:
        return " TRYING TO INITIALIZE "
    if state == TrackingState.OK:
        text = "LOCALIZATION | " if only_tracking else "SLAM MODE |  "
        text += f"KFs: {keyframes}, MPs: {map_points}, Matches: {tracked}"
        if tracked_vo > 0:
            text += f", + VO matches: {tracked_vo}"
        return text
    if state == TrackingState.LOST:
        return " TRACK LOST. TRYING TO RELOCALIZE "
    if state == TrackingState.SYSTEM_NOT_READY:
        return " LOADING ORB VOCABULARY. PLEASE WAIT..."
    return ""


def _set_pixel(image: np.ndarray, x: int, y: int, color) -> None:
    if 0 <= y < image.shape[0] and 0 <= x < image.shape[1]:
        image[y, x] = color


def _draw_line(image, p1, p2, color) -> None:
    x1, y1 = round(p1[0]), round(p1[1])
    x2, y2 = round(p2[0]), round(p2[1])
    steps = max(abs(x2 - x1), abs(y2 - y1)) + 1
    for x, y in zip(np.linspace(x1, x2, steps), np.linspace(y1, y2, steps)):
        _set_pixel(image, int(round(x)), int(round(y)), color)


def _draw_rectangle(image, p1, p2, color) -> None:
    x1, y1, x2, y2 = round(p1[0]), round(p1[1]), round(p2[0]), round(p2[1])
    for a, b in (((x1, y1), (x2, y1)), ((x2, y1), (x2, y2)), ((x2, y2), (x1, y2)), ((x1, y2), (x1, y1))):
        _draw_line(image, a, b, color)


def _draw_dot(image, center, radius, color) -> None:
    cx, cy = round(center[0]), round(center[1])
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dx * dx + dy * dy <= radius * radius:
                _set_pixel(image, cx + dx, cy + dy, color)


def _to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return np.repeat(image[:, :, None], 3, axis=2)
    if image.shape[2] == 1:
        return np.repeat(image, 3, axis=2)
    return image.copy()


class FrameDrawer:
    """Holds the latest tracking result and renders it on demand."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = TrackingState.SYSTEM_NOT_READY
        self._image = np.zeros((480, 640, 3), dtype=np.uint8)
        self._keypoints: list[KeyPoint] = []
        self._initial_keypoints: list[KeyPoint] = []
        self._initial_matches: list[int] = []
        self._map_flags: list[bool] = []
        self._vo_flags: list[bool] = []
        self._only_tracking = False
        self.tracked = 0
        self.tracked_vo = 0

    def update(
        self,
        state: TrackingState,
        image: np.ndarray,
        keypoints: Sequence[KeyPoint],
        only_tracking: bool,
        initial_keypoints: Sequence[KeyPoint] | None = None,
        initial_matches: Sequence[int] | None = None,
        tracked_flags: Sequence[bool | None] | None = None,
    ) -> None:
        """Store a tracking result.

        ``tracked_flags`` holds one entry per keypoint: True for a match to a map
        point with observations, False for a visual-odometry match, None otherwise.
        """
        state = TrackingState(state)
        with self._lock:
            self._image = np.array(image, copy=True)
            self._keypoints = list(keypoints)
            n = len(self._keypoints)
            self._vo_flags = [False] * n
            self._map_flags = [False] * n
            self._only_tracking = bool(only_tracking)
            if state == TrackingState.NOT_INITIALIZED:
                self._initial_keypoints = list(initial_keypoints or [])
                self._initial_matches = list(initial_matches or [])
            elif state == TrackingState.OK and tracked_flags is not None:
                if len(tracked_flags) != n:
                    raise ValueError("tracked_flags needs one entry per keypoint")
                for i, flag in enumerate(tracked_flags):
                    if flag is True:
                        self._map_flags[i] = True
                    elif flag is False:
                        self._vo_flags[i] = True
            self._state = state

    def draw_frame(self, keyframes_in_map: int, map_points_in_map: int) -> DrawnFrame:
        """Render the stored image with matches or tracked points marked."""
        with self._lock:
            state = self._state
            if self._state == TrackingState.SYSTEM_NOT_READY:
                self._state = TrackingState.NO_IMAGES_YET
            image = self._image.copy()
            current: list[KeyPoint] = []
            initial: list[KeyPoint] = []
            matches: list[int] = []
            vo_flags: list[bool] = []
            map_flags: list[bool] = []
            if self._state == TrackingState.NOT_INITIALIZED:
                current, initial, matches = self._keypoints, self._initial_keypoints, self._initial_matches
            elif self._state == TrackingState.OK:
                current, vo_flags, map_flags = self._keypoints, self._vo_flags, self._map_flags
            elif self._state == TrackingState.LOST:
                current = self._keypoints
            only_tracking = self._only_tracking

        image = _to_bgr(image)
        drawn_matches = []
        if state == TrackingState.NOT_INITIALIZED:
            for i, match in enumerate(matches):
                if match >= 0:
                    a = (initial[i].x, initial[i].y)
                    b = (current[match].x, current[match].y)
                    _draw_line(image, a, b, GREEN)
                    drawn_matches.append((a, b))
        elif state == TrackingState.OK:
            self.tracked = 0
            self.tracked_vo = 0
            r = _BOX_HALF_SIZE
            for kp, is_vo, is_map in zip(current, vo_flags, map_flags):
                if not (is_vo or is_map):
                    continue
                color = GREEN if is_map else BLUE
                _draw_rectangle(image, (kp.x - r, kp.y - r), (kp.x + r, kp.y + r), color)
                _draw_dot(image, (kp.x, kp.y), _DOT_RADIUS, color)
                if is_map:
                    self.tracked += 1
                else:
                    self.tracked_vo += 1

        text = status_text(
            state, only_tracking, keyframes_in_map, map_points_in_map, self.tracked, self.tracked_vo
        )
        return DrawnFrame(
            image=image,
            text=text,
            state=state,
            tracked=self.tracked,
            tracked_vo=self.tracked_vo,
            matches=drawn_matches,
        )