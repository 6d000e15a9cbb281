import numpy as np
import pytest

from orbvision.camera import KeyPoint
from orbvision.status import FrameDrawer, TrackingState, status_text


def test_status_text_fixed_messages():
    assert status_text(TrackingState.NO_IMAGES_YET, False, 0, 0, 0, 0) == " WAITING FOR IMAGES"
    assert status_text(TrackingState.NOT_INITIALIZED, False, 0, 0, 0, 0) == " TRYING TO INITIALIZE "
    assert status_text(TrackingState.LOST, False, 0, 0, 0, 0) == " TRACK LOST. TRYING TO RELOCALIZE "
    assert (
        status_text(TrackingState.SYSTEM_NOT_READY, False, 0, 0, 0, 0)
        == " LOADING ORB VOCABULARY. PLEASE WAIT..."
    )


def test_status_text_tracking():
    assert status_text(TrackingState.OK, False, 3, 40, 7, 0) == "SLAM MODE |  KFs: 3, MPs: 40, Matches: 7"
    text = status_text(TrackingState.OK, True, 3, 40, 7, 2)
    assert text.startswith("LOCALIZATION | ")
    assert text.endswith(", + VO matches: 2")


def test_first_draw_moves_to_waiting():
    drawer = FrameDrawer()
    first = drawer.draw_frame(0, 0)
    assert first.state == TrackingState.SYSTEM_NOT_READY
    assert first.image.shape == (480, 640, 3)
    second = drawer.draw_frame(0, 0)
    assert second.state == TrackingState.NO_IMAGES_YET
    assert second.text == " WAITING FOR IMAGES"


def test_tracking_counts_and_colours():
    drawer = FrameDrawer()
    gray = np.zeros((60, 80), dtype=np.uint8)
    kps = [KeyPoint(20.0, 20.0), KeyPoint(50.0, 30.0), KeyPoint(10.0, 50.0)]
    drawer.update(TrackingState.OK, gray, kps, False, tracked_flags=[True, False, None])
    frame = drawer.draw_frame(5, 100)
    assert frame.tracked == 1
    assert frame.tracked_vo == 1
    assert frame.image.shape == (60, 80, 3)
    assert tuple(frame.image[20, 20]) == (0, 255, 0)
    assert tuple(frame.image[30, 50]) == (255, 0, 0)
    assert tuple(frame.image[50, 10]) == (0, 0, 0)
    assert "Matches: 1" in frame.text and "VO matches: 1" in frame.text


def test_initialization_draws_matches():
    drawer = FrameDrawer()
    image = np.zeros((40, 40, 3), dtype=np.uint8)
    initial = [KeyPoint(5.0, 5.0), KeyPoint(30.0, 30.0)]
    current = [KeyPoint(10.0, 5.0), KeyPoint(35.0, 35.0)]
    drawer.update(TrackingState.NOT_INITIALIZED, image, current, False, initial, [0, -1])
    frame = drawer.draw_frame(0, 0)
    assert frame.matches == [((5.0, 5.0), (10.0, 5.0))]
    assert tuple(frame.image[5, 7]) == (0, 255, 0)
    assert frame.text == " TRYING TO INITIALIZE "


def test_flags_length_mismatch():
    drawer = FrameDrawer()
    with pytest.raises(ValueError):
        drawer.update(TrackingState.OK, np.zeros((4, 4)), [KeyPoint(1.0, 1.0)], False, tracked_flags=[])