import numpy as np
import pytest

from alarmcam.detector import MotionLightDetector
from alarmcam.driver import FrameRateGate, StreamDriver, iter_video_frames
from alarmcam.parameters import DetectorParameters


def uniform(value, size=40):
    return np.full((size, size, 3), value, dtype=np.uint8)


def with_block(size=40):
    frame = uniform(128, size)
    frame[10:20, 10:20] = 230
    return frame


def make_driver(**params):
    events = []
    notifications = []
    detector = MotionLightDetector(
        DetectorParameters(**params),
        on_detection=events.append,
        on_pause_change=lambda paused, remaining: notifications.append((paused, remaining)),
    )
    return StreamDriver(detector, clock=lambda: 0.0), events, notifications


def test_gate_enforces_frame_interval():
    gate = FrameRateGate(target_fps=10)

    assert gate.ready(0) is True
    assert gate.ready(50) is False
    assert gate.ready(99.9) is False
    assert gate.ready(100) is True

    gate.reset()
    assert gate.ready(101) is True


def test_gate_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        FrameRateGate(0)


def test_ticks_ignored_until_started():
    driver, events, _ = make_driver()

    assert driver.tick(uniform(128), 0) is None
    assert not driver.detector.background.is_initialized


def test_gated_ticks_do_not_touch_state():
    driver, events, _ = make_driver()
    driver.start()
    driver.tick(uniform(128), 0)
    metrics = driver.detector.last_metrics

    driver.tick(with_block(), 50)

    assert driver.detector.last_metrics is metrics
    assert driver.detector.motion_counter == 0


def test_detection_through_driver():
    driver, events, _ = make_driver()
    driver.start()

    for now_ms in (0, 100, 200):
        frame = uniform(128) if now_ms == 0 else with_block()
        driver.tick(frame, now_ms)

    assert len(events) == 1
    assert events[0].motion


def test_stop_clears_pending_pause():
    driver, events, notifications = make_driver()
    driver.start()
    for now_ms in (0, 100, 200):
        driver.tick(uniform(128) if now_ms == 0 else with_block(), now_ms)
    assert driver.detector.pause.is_paused()

    driver.stop()

    assert not driver.detector.pause.is_paused()
    assert notifications[-1] == (False, None)
    assert driver.tick(with_block(), 300) is None


def test_restart_is_cold():
    driver, events, _ = make_driver()
    driver.start()
    driver.tick(uniform(128), 0)
    driver.stop()

    driver.start()

    assert not driver.detector.background.is_initialized


def test_requested_reset_applies_to_next_frame():
    driver, events, _ = make_driver()
    driver.start()
    driver.tick(uniform(128), 0)

    driver.request_background_reset()
    assert driver.tick(uniform(200), 50) is None
    assert np.all(driver.detector.background.plane == 200)

    driver.tick(uniform(200), 100)
    assert driver.detector.last_metrics.ratio == 0.0
    assert events == []


def test_missing_video_raises():
    with pytest.raises(ValueError):
        list(iter_video_frames("/nonexistent/video.mp4"))
