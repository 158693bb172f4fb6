from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import numpy as np

from alarmcam.decision import BoundingBox, Decision
from alarmcam.evidence import EvidenceSink, PngEvidenceSink, png_data_url, render_marked_region
from alarmcam.thresholds import Thresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionEvent:
    """
    One emitted detection with its metrics and evidence images.

    Image fields hold whatever the evidence sink returned (PNG bytes with the
    default sink); a field is empty when its image could not be rendered, and
    the reason is listed in evidence_errors.
    """

    id: int
    timestamp: str  # ISO-8601, UTC
    sudden_light: bool
    motion: bool
    ratio: float
    mean_diff: float
    before_image: Any
    after_image: Any
    background_image: Any
    marked_image: Any
    bbox: BoundingBox | None = None

    pixel_threshold: int = 0
    sensitivity_ratio: float = 0.0
    sudden_light_threshold: int = 0
    evidence_errors: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self, include_images: bool = False) -> dict:
        """
        JSON-serializable view of the event.

        Args:
            include_images: Embed images as PNG data URLs (bytes images only)
        """
        d = {
            "id": self.id,
            "timestamp": self.timestamp,
            "suddenLight": self.sudden_light,
            "motion": self.motion,
            "ratio": self.ratio,
            "meanDiff": self.mean_diff,
            "pixelThreshold": self.pixel_threshold,
            "sensitivityRatio": self.sensitivity_ratio,
            "suddenLightThreshold": self.sudden_light_threshold,
            "bbox": self.bbox.to_dict() if self.bbox is not None else None,
            "evidenceErrors": list(self.evidence_errors),
        }
        if include_images:
            for key, image in (
                ("before", self.before_image),
                ("after", self.after_image),
                ("background", self.background_image),
                ("marked", self.marked_image),
            ):
                d[key] = png_data_url(image) if isinstance(image, bytes) else ""
        return d


class DetectionEventBuilder:
    """Packages a decision and the frames behind it into a DetectionEvent."""

    def __init__(
        self,
        sink: EvidenceSink | None = None,
        output_size: tuple[int, int] = (240, 160),
        wall_clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            sink: Converts rendered planes into evidence handles
            output_size: (width, height) of the marked image
            wall_clock: Seconds since the epoch, used for id and timestamp
        """
        self.sink = sink or PngEvidenceSink()
        self.output_size = output_size
        self.wall_clock = wall_clock
        self._last_id = 0

    def build(
        self,
        decision: Decision,
        *,
        ratio: float,
        mean_diff: float,
        thresholds: Thresholds,
        before: np.ndarray,
        after: np.ndarray,
        background: np.ndarray,
    ) -> DetectionEvent:
        now_s = self.wall_clock()
        errors: list[str] = []

        before_image = self._capture("before", lambda: before, errors)
        after_image = self._capture("after", lambda: after, errors)
        background_image = self._capture("background", lambda: background, errors)
        marked_image = self._capture(
            "marked",
            lambda: render_marked_region(after, decision.bbox, self.output_size),
            errors,
        )

        return DetectionEvent(
            id=self._next_id(now_s),
            timestamp=datetime.fromtimestamp(now_s, tz=timezone.utc).isoformat(),
            sudden_light=decision.sudden_light,
            motion=decision.motion,
            ratio=float(ratio),
            mean_diff=float(mean_diff),
            before_image=before_image,
            after_image=after_image,
            background_image=background_image,
            marked_image=marked_image,
            bbox=decision.bbox,
            pixel_threshold=thresholds.pixel_threshold,
            sensitivity_ratio=thresholds.sensitivity_ratio,
            sudden_light_threshold=thresholds.sudden_light_threshold,
            evidence_errors=tuple(errors),
        )

    def _capture(
        self,
        name: str,
        render: Callable[[], np.ndarray],
        errors: list[str],
    ) -> Any:
        try:
            return self.sink.capture(render())
        except Exception as exc:
            # Sinks are caller-supplied; any failure degrades to an empty image
            logger.warning("Could not render %s image: %s", name, exc)
            errors.append(f"{name}: {exc}")
            return b""

    def _next_id(self, now_s: float) -> int:
        # Millisecond ids, kept strictly increasing
        candidate = int(now_s * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate
