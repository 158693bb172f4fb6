from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from alarmcam.detector import TickMetrics

FLOAT_FIELDS = (
    "timestamp_ms",
    "avg_abs_diff",
    "mean_diff",
    "ratio",
    "sensitivity_ratio",
)
INT_FIELDS = ("pixel_threshold", "sudden_light_threshold", "motion_counter")
BOOL_FIELDS = ("sudden_light", "motion", "emitted")


@dataclass
class SignalTrace:
    """
    Data-oriented storage for per-tick detector signals.

    All arrays have shape (n_ticks,); only processed ticks are recorded, so
    ticks skipped during a pause leave a gap in timestamp_ms.
    """

    timestamp_ms: np.ndarray
    avg_abs_diff: np.ndarray
    mean_diff: np.ndarray
    ratio: np.ndarray
    sensitivity_ratio: np.ndarray
    pixel_threshold: np.ndarray
    sudden_light_threshold: np.ndarray
    motion_counter: np.ndarray
    sudden_light: np.ndarray
    motion: np.ndarray
    emitted: np.ndarray

    @property
    def n_ticks(self) -> int:
        return int(self.timestamp_ms.shape[0])

    @property
    def emission_indices(self) -> np.ndarray:
        return np.flatnonzero(self.emitted)

    @classmethod
    def from_metrics(cls, metrics: list[TickMetrics]) -> "SignalTrace":
        """Convert a list of TickMetrics to column arrays."""
        columns: dict[str, np.ndarray] = {}
        for name in FLOAT_FIELDS:
            columns[name] = np.array([getattr(m, name) for m in metrics], dtype=np.float64)
        for name in INT_FIELDS:
            columns[name] = np.array([getattr(m, name) for m in metrics], dtype=np.int32)
        for name in BOOL_FIELDS:
            columns[name] = np.array([getattr(m, name) for m in metrics], dtype=bool)
        return cls(**columns)

    @classmethod
    def empty(cls) -> "SignalTrace":
        return cls.from_metrics([])


@dataclass
class TraceRecorder:
    """Collects TickMetrics from MotionLightDetector.on_tick."""

    metrics: list[TickMetrics] = field(default_factory=list)

    def __call__(self, tick: TickMetrics) -> None:
        self.metrics.append(tick)

    def to_trace(self) -> SignalTrace:
        return SignalTrace.from_metrics(self.metrics)
