from __future__ import annotations

import math
from dataclasses import dataclass

from alarmcam.parameters import DetectorParameters


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class RunningStatistic:
    """Exponential moving average seeded by its first sample."""

    def __init__(self, alpha: float = 0.05):
        self.alpha = alpha
        self._value = 0.0
        self._initialized = False

    @property
    def value(self) -> float:
        return self._value

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def update(self, sample: float) -> float:
        if not self._initialized:
            self._value = float(sample)
            self._initialized = True
        else:
            self._value = self._value * (1.0 - self.alpha) + float(sample) * self.alpha
        return self._value

    def reset(self) -> None:
        self._value = 0.0
        self._initialized = False


@dataclass(frozen=True)
class Thresholds:
    """Per-tick thresholds derived from the running statistics."""

    pixel_threshold: int
    sensitivity_ratio: float
    sudden_light_threshold: int


class AdaptiveThresholdEstimator:
    """
    Tracks ambient noise and brightness flicker and derives thresholds from them.

    Two running statistics are kept: the average absolute deviation of a frame
    from the background, and the absolute change of mean brightness between
    consecutive frames. A noisy or flickering scene pushes all three
    thresholds up; a calm scene lets them settle to their floors.
    """

    def __init__(self, params: DetectorParameters | None = None):
        self.params = params or DetectorParameters()
        self.avg_diff = RunningStatistic(self.params.alpha_ema)
        self.mean_diff = RunningStatistic(self.params.alpha_ema)

    def update(self, avg_abs_diff: float, mean_diff: float) -> Thresholds:
        """
        Feed one tick's measurements and return the thresholds for that tick.

        Args:
            avg_abs_diff: Mean |current - background| over all pixels
            mean_diff: |mean(current) - mean(previous)|
        """
        self.avg_diff.update(avg_abs_diff)
        self.mean_diff.update(mean_diff)
        return self.current()

    def current(self) -> Thresholds:
        return Thresholds(
            pixel_threshold=self.pixel_threshold(self.avg_diff.value),
            sensitivity_ratio=self.sensitivity_ratio(self.avg_diff.value),
            sudden_light_threshold=self.sudden_light_threshold(self.mean_diff.value),
        )

    def pixel_threshold(self, ema_avg_diff: float) -> int:
        p = self.params
        return max(p.pixel_threshold_floor, _round_half_up(ema_avg_diff * p.pixel_threshold_scale))

    def sensitivity_ratio(self, ema_avg_diff: float) -> float:
        p = self.params
        noise = ema_avg_diff / (ema_avg_diff + 1.0)
        ratio = p.sensitivity_factor * noise * 0.01 + p.base_sensitivity_ratio
        return min(p.max_sensitivity_ratio, max(p.min_sensitivity_ratio, ratio))

    def sudden_light_threshold(self, ema_mean_diff: float) -> int:
        p = self.params
        scaled = max(ema_mean_diff * p.sudden_light_scale, ema_mean_diff + p.sudden_light_offset)
        return max(p.sudden_light_floor, _round_half_up(scaled))

    def reset(self) -> None:
        self.avg_diff.reset()
        self.mean_diff.reset()
