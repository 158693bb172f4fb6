"""
Motion and light-change detection engine.

MotionLightDetector runs one tick end to end:

    frame -> grayscale -> background / running statistics -> foreground mask
          -> {debounced motion, sudden light} -> decision
          -> optionally event + pause -> background update (full or masked)

All per-pixel state is owned here and assumes a fixed frame geometry; a
frame of a different size reinitializes everything.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np

from alarmcam.background import BackgroundModel
from alarmcam.confirmation import MotionConfirmer, SuddenLightDetector
from alarmcam.decision import DetectionDecider
from alarmcam.errors import InputUnavailableError
from alarmcam.events import DetectionEvent, DetectionEventBuilder
from alarmcam.evidence import EvidenceSink, PngEvidenceSink
from alarmcam.grayscale import mean_brightness, to_grayscale
from alarmcam.parameters import DetectorParameters
from alarmcam.pause import PauseCallback, PauseController
from alarmcam.segmentation import ForegroundSegmenter
from alarmcam.thresholds import AdaptiveThresholdEstimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickMetrics:
    """Signals computed on one processed tick."""

    timestamp_ms: float
    avg_abs_diff: float
    mean_diff: float
    ratio: float
    pixel_threshold: int
    sensitivity_ratio: float
    sudden_light_threshold: int
    motion_counter: int
    sudden_light: bool
    motion: bool
    emitted: bool


class MotionLightDetector:
    """
    Adaptive background-subtraction detector.

    Usage:
        detector = MotionLightDetector(params, on_detection=handle_event)
        for now_ms, frame in frames:
            detector.process(frame, now_ms)
    """

    def __init__(
        self,
        params: DetectorParameters | None = None,
        *,
        on_detection: Callable[[DetectionEvent], None] | None = None,
        on_pause_change: PauseCallback | None = None,
        on_tick: Callable[[TickMetrics], None] | None = None,
        on_reference_background: Callable[[Any], None] | None = None,
        evidence_sink: EvidenceSink | None = None,
        wall_clock: Callable[[], float] | None = None,
    ):
        """
        Args:
            params: Detector parameters (validated here)
            on_detection: Called with every emitted DetectionEvent
            on_pause_change: Called with (paused, remaining_ms) notifications
            on_tick: Called with the TickMetrics of every processed tick
            on_reference_background: Called with the reference background
                image whenever the background is (re)initialized or reset
            evidence_sink: Turns planes into evidence handles (PNG bytes by default)
            wall_clock: Epoch-seconds clock for event ids and timestamps
        """
        self.params = (params or DetectorParameters()).validate()
        self.on_detection = on_detection
        self.on_tick = on_tick
        self.on_reference_background = on_reference_background
        self.sink = evidence_sink or PngEvidenceSink()

        self.background = BackgroundModel(alpha=self.params.alpha_bg)
        self.estimator = AdaptiveThresholdEstimator(self.params)
        self.segmenter = ForegroundSegmenter()
        self.confirmer = MotionConfirmer(self.params.confirm_frames)
        self.sudden_light = SuddenLightDetector()
        self.decider = DetectionDecider(bbox_min_area=self.params.bbox_min_area)
        self.pause = PauseController(
            duration_ms=self.params.pause_duration_ms,
            poll_interval_ms=self.params.pause_poll_interval_ms,
            on_change=on_pause_change,
        )
        builder_kwargs = {"sink": self.sink, "output_size": self.params.evidence_output_size}
        if wall_clock is not None:
            builder_kwargs["wall_clock"] = wall_clock
        self.builder = DetectionEventBuilder(**builder_kwargs)

        self._prev_gray: np.ndarray | None = None
        self._reference_image: Any = None
        self._last_metrics: TickMetrics | None = None

    @property
    def shape(self) -> tuple[int, int] | None:
        return self.background.shape

    @property
    def last_metrics(self) -> TickMetrics | None:
        return self._last_metrics

    @property
    def reference_background_image(self) -> Any:
        """Evidence handle of the background at the last (re)initialization or reset."""
        return self._reference_image

    @property
    def motion_counter(self) -> int:
        return self.confirmer.counter

    def is_paused(self, now_ms: float) -> bool:
        return self.pause.poll(now_ms)

    def reinitialize(self) -> None:
        """Cold start: forget background, statistics, counter, mask and pause."""
        self.background.clear()
        self.segmenter.clear()
        self.estimator.reset()
        self.confirmer.reset()
        self.pause.clear()
        self._prev_gray = None
        self._last_metrics = None

    def stop(self) -> None:
        """Drop any pending pause so nothing fires after the stream stops."""
        self.pause.clear()

    def reset_background(self, frame: np.ndarray) -> None:
        """
        Use frame as the new background right away.

        Clears the occlusion mask and the previous-frame cache; the running
        statistics and the confirmation counter are kept.
        """
        gray = self._prepare(frame)
        if self.background.shape is not None and self.background.shape != gray.shape:
            logger.warning(
                "Reset frame is %dx%d but state is %dx%d; reinitializing",
                gray.shape[1], gray.shape[0], self.shape[1], self.shape[0],
            )
            self.reinitialize()
        self.background.reset(gray)
        self._prev_gray = None
        logger.info("Background reset")
        self._publish_reference()

    def process(self, frame: np.ndarray | None, now_ms: float) -> DetectionEvent | None:
        """
        Run one tick.

        Args:
            frame: Color raster or intensity plane; None when the source had
                nothing for this tick
            now_ms: Monotonic tick time in milliseconds

        Returns:
            The emitted DetectionEvent, or None
        """
        if self.pause.poll(now_ms):
            return None

        try:
            gray = self._prepare(frame)
        except InputUnavailableError as exc:
            logger.debug("Skipping tick: %s", exc)
            return None

        if self.background.shape is not None and self.background.shape != gray.shape:
            logger.warning(
                "Frame geometry changed from %dx%d to %dx%d; reinitializing",
                self.shape[1], self.shape[0], gray.shape[1], gray.shape[0],
            )
            self.reinitialize()

        mean = mean_brightness(gray)
        prev_mean = mean_brightness(self._prev_gray) if self._prev_gray is not None else mean
        mean_diff = abs(mean - prev_mean)

        if self.background.initialize_if_absent(gray):
            logger.info("Background initialized (%dx%d)", gray.shape[1], gray.shape[0])
            self._publish_reference()

        avg_abs_diff = self.segmenter.difference(gray, self.background.plane)
        thresholds = self.estimator.update(avg_abs_diff, mean_diff)
        segmentation = self.segmenter.segment(thresholds.pixel_threshold)

        sudden_light = self.sudden_light.detect(mean_diff, thresholds.sudden_light_threshold)
        motion = self.confirmer.update(segmentation.changed_ratio, thresholds.sensitivity_ratio)
        decision = self.decider.decide(sudden_light, motion, segmentation.mask)

        event = None
        if decision.should_emit:
            event = self.builder.build(
                decision,
                ratio=segmentation.changed_ratio,
                mean_diff=mean_diff,
                thresholds=thresholds,
                before=self._prev_gray if self._prev_gray is not None else gray,
                after=gray,
                background=self.background.snapshot(),
            )
            logger.info(
                "Detection %d: motion=%s sudden_light=%s ratio=%.4f mean_diff=%.2f bbox=%s",
                event.id, event.motion, event.sudden_light,
                event.ratio, event.mean_diff, event.bbox,
            )
            self.background.set_occlusion_mask(
                segmentation.mask, now_ms + self.params.effective_occlusion_hold_ms
            )
            self.pause.start(now_ms)

        self.background.update(gray, now_ms)
        self._prev_gray = gray

        self._last_metrics = TickMetrics(
            timestamp_ms=now_ms,
            avg_abs_diff=avg_abs_diff,
            mean_diff=mean_diff,
            ratio=segmentation.changed_ratio,
            pixel_threshold=thresholds.pixel_threshold,
            sensitivity_ratio=thresholds.sensitivity_ratio,
            sudden_light_threshold=thresholds.sudden_light_threshold,
            motion_counter=self.confirmer.counter,
            sudden_light=sudden_light,
            motion=motion,
            emitted=event is not None,
        )
        if self.on_tick is not None:
            self.on_tick(self._last_metrics)
        if event is not None and self.on_detection is not None:
            self.on_detection(event)
        return event

    def _prepare(self, frame: np.ndarray | None) -> np.ndarray:
        if frame is None:
            raise InputUnavailableError("no frame")
        if frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
            raise InputUnavailableError(f"frame has zero dimensions {frame.shape}")
        return to_grayscale(frame, self.params.channel_order)

    def _publish_reference(self) -> None:
        try:
            self._reference_image = self.sink.capture(self.background.snapshot())
        except Exception as exc:
            # Sinks are caller-supplied; a failed capture must not abort the tick
            logger.warning("Could not render reference background: %s", exc)
            self._reference_image = None
            return
        if self.on_reference_background is not None:
            self.on_reference_background(self._reference_image)
