from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from alarmcam.errors import DimensionMismatchError


@dataclass
class SegmentationResult:
    """Foreground mask for one tick."""

    mask: np.ndarray  # (H, W) bool, reused by the next segment() call
    changed_count: int
    changed_ratio: float


class ForegroundSegmenter:
    """
    Per-pixel background subtraction.

    difference() must be called before segment() on each tick: the absolute
    difference is kept in a reused buffer so the threshold, which depends on
    the average difference, can be chosen in between.
    """

    def __init__(self):
        self._diff: np.ndarray | None = None
        self._mask: np.ndarray | None = None

    def difference(self, current: np.ndarray, background: np.ndarray) -> float:
        """
        Compute |current - background| into the internal buffer.

        Returns:
            Average absolute deviation per pixel
        """
        if current.shape != background.shape:
            raise DimensionMismatchError(background.shape[:2], current.shape[:2])
        if self._diff is None or self._diff.shape != current.shape:
            self._diff = np.zeros(current.shape, dtype=np.int16)
            self._mask = np.zeros(current.shape, dtype=bool)

        np.subtract(current, background, out=self._diff, dtype=np.int16)
        np.abs(self._diff, out=self._diff)
        return float(self._diff.mean())

    def segment(self, pixel_threshold: int) -> SegmentationResult:
        """Mark pixels whose difference is strictly above pixel_threshold."""
        if self._diff is None:
            raise ValueError("difference() must be called before segment()")

        np.greater(self._diff, pixel_threshold, out=self._mask)
        changed = int(np.count_nonzero(self._mask))
        return SegmentationResult(
            mask=self._mask,
            changed_count=changed,
            changed_ratio=changed / self._mask.size,
        )

    @property
    def diff(self) -> np.ndarray | None:
        return self._diff

    def clear(self) -> None:
        self._diff = None
        self._mask = None
