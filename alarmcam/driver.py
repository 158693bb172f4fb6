from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

import cv2
import numpy as np

from alarmcam.detector import MotionLightDetector
from alarmcam.events import DetectionEvent
from alarmcam.parameters import DetectorParameters
from alarmcam.pause import PauseCallback
from alarmcam.trace import SignalTrace, TraceRecorder

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class FrameRateGate:
    """Lets a tick through only when a full frame interval has elapsed."""

    def __init__(self, target_fps: float = 10.0):
        if target_fps <= 0:
            raise ValueError("target_fps must be positive")
        self.interval_ms = 1000.0 / target_fps
        self._last_ms: float | None = None

    def ready(self, now_ms: float) -> bool:
        # First tick after start always passes
        if self._last_ms is None or now_ms - self._last_ms >= self.interval_ms:
            self._last_ms = now_ms
            return True
        return False

    def reset(self) -> None:
        self._last_ms = None


class StreamDriver:
    """
    Feeds frames from a live source into a MotionLightDetector.

    Each tick is gated on the target frame rate and on the detector's pause
    state; a skipped tick mutates nothing. A background reset requested with
    request_background_reset() is applied to the next delivered frame.
    """

    def __init__(
        self,
        detector: MotionLightDetector,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.detector = detector
        self.clock = clock
        self.gate = FrameRateGate(detector.params.target_fps)
        self._running = False
        self._reset_requested = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start processing from a cold state."""
        if self._running:
            return
        self.detector.reinitialize()
        self.gate.reset()
        self._reset_requested = False
        self._running = True
        logger.info("Detection started")

    def stop(self) -> None:
        """Stop processing and drop any pending pause or reset."""
        if not self._running:
            return
        self._running = False
        self._reset_requested = False
        self.detector.stop()
        self.gate.reset()
        logger.info("Detection stopped")

    def request_background_reset(self) -> None:
        self._reset_requested = True

    def tick(self, frame: np.ndarray | None, now_ms: float | None = None) -> DetectionEvent | None:
        """
        Offer one frame to the detector.

        Returns:
            The emitted DetectionEvent, or None if nothing fired or the tick
            was skipped
        """
        if not self._running:
            return None
        if now_ms is None:
            now_ms = self.clock()

        if self._reset_requested and frame is not None and frame.size > 0:
            self._reset_requested = False
            self.detector.reset_background(frame)
            return None

        if not self.gate.ready(now_ms):
            return None
        if self.detector.is_paused(now_ms):
            return None
        return self.detector.process(frame, now_ms)


def iter_video_frames(
    video_path: str,
    max_frames: int | None = None,
) -> Iterator[tuple[int, np.ndarray, float]]:
    """
    Yield (frame_idx, frame, timestamp_ms) from a video file.

    Timestamps come from the container position; when it is unavailable they
    are derived from the frame index and the reported frame rate.
    """
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ValueError(f"Unable to open video: {video_path}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
    frame_idx = 0
    try:
        while max_frames is None or frame_idx < max_frames:
            ret, frame = cap.read()
            if not ret:
                break
            timestamp_ms = cap.get(cv2.CAP_PROP_POS_MSEC)
            if not timestamp_ms and frame_idx > 0:
                timestamp_ms = frame_idx * 1000.0 / fps if fps > 0 else frame_idx * 100.0
            yield frame_idx, frame, float(timestamp_ms)
            frame_idx += 1
    finally:
        cap.release()


def read_video_fps(video_path: str) -> float:
    cap = cv2.VideoCapture(video_path)
    try:
        return float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
    finally:
        cap.release()


@dataclass
class DetectionRun:
    """Outcome of running the detector over a video."""

    events: list[DetectionEvent]
    trace: SignalTrace
    fps: float
    frames_read: int = 0
    reference_background: bytes | None = None
    pause_notifications: list[tuple[bool, float | None]] = field(default_factory=list)


def run_detection(
    video_path: str,
    params: DetectorParameters | None = None,
    max_frames: int | None = None,
    on_detection: Callable[[DetectionEvent], None] | None = None,
    on_pause_change: PauseCallback | None = None,
) -> DetectionRun:
    """
    Run the detector over a video file, using video time as the tick clock.

    Args:
        video_path: Path to video file
        params: Detector parameters (defaults if None)
        max_frames: Optional cap on frames read
        on_detection: Also called with each event as it is emitted
        on_pause_change: Also called with each pause notification

    Returns:
        DetectionRun with the events, the per-tick signal trace and fps
    """
    params = params or DetectorParameters()
    events: list[DetectionEvent] = []
    notifications: list[tuple[bool, float | None]] = []
    recorder = TraceRecorder()

    def _handle_detection(event: DetectionEvent) -> None:
        events.append(event)
        if on_detection is not None:
            on_detection(event)

    def _handle_pause(paused: bool, remaining_ms: float | None) -> None:
        notifications.append((paused, remaining_ms))
        if on_pause_change is not None:
            on_pause_change(paused, remaining_ms)

    detector = MotionLightDetector(
        params,
        on_detection=_handle_detection,
        on_pause_change=_handle_pause,
        on_tick=recorder,
    )
    driver = StreamDriver(detector)
    driver.start()

    frames_read = 0
    try:
        for _, frame, timestamp_ms in iter_video_frames(video_path, max_frames=max_frames):
            frames_read += 1
            driver.tick(frame, timestamp_ms)
    finally:
        driver.stop()

    logger.info("Processed %d frames, %d detections", frames_read, len(events))
    return DetectionRun(
        events=events,
        trace=recorder.to_trace(),
        fps=read_video_fps(video_path),
        frames_read=frames_read,
        reference_background=detector.reference_background_image,
        pause_notifications=notifications,
    )
