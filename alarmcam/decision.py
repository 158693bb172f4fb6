from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from alarmcam.mask_utils import clean_binary_mask


@dataclass(frozen=True)
class BoundingBox:
    """Integer rectangle in pixel coordinates (x, y = top-left corner)."""

    x: int
    y: int
    w: int
    h: int

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @property
    def area(self) -> int:
        return self.w * self.h


def bbox_from_mask(mask: np.ndarray | None) -> BoundingBox | None:
    """
    Tight rectangle covering every set pixel of a mask.

    Returns:
        BoundingBox, or None if the mask is missing or empty
    """
    if mask is None or mask.size == 0:
        return None

    rows = np.flatnonzero(mask.any(axis=1))
    if rows.size == 0:
        return None
    cols = np.flatnonzero(mask.any(axis=0))

    y0, y1 = int(rows[0]), int(rows[-1])
    x0, x1 = int(cols[0]), int(cols[-1])
    return BoundingBox(x=x0, y=y0, w=x1 - x0 + 1, h=y1 - y0 + 1)


@dataclass(frozen=True)
class Decision:
    should_emit: bool
    sudden_light: bool
    motion: bool
    bbox: BoundingBox | None = None


class DetectionDecider:
    """
    Combines the debounced motion signal with the sudden-light signal.

    A detection is emitted when either fires. The bounding box is only
    computed for emitted detections; a pure lighting change with no pixel
    above the pixel threshold has no box.
    """

    def __init__(self, bbox_min_area: int = 0):
        """
        Args:
            bbox_min_area: If > 0, clean the mask of components smaller than
                this before taking the box (the changed ratio is unaffected)
        """
        self.bbox_min_area = bbox_min_area

    def decide(
        self,
        sudden_light: bool,
        motion_confirmed: bool,
        mask: np.ndarray | None,
    ) -> Decision:
        should_emit = bool(sudden_light or motion_confirmed)
        if not should_emit:
            return Decision(False, bool(sudden_light), bool(motion_confirmed))

        return Decision(
            should_emit=True,
            sudden_light=bool(sudden_light),
            motion=bool(motion_confirmed),
            bbox=self.bounding_box(mask),
        )

    def bounding_box(self, mask: np.ndarray | None) -> BoundingBox | None:
        if mask is None:
            return None
        if self.bbox_min_area > 0 and mask.any():
            mask = clean_binary_mask(mask, min_area=self.bbox_min_area)
        return bbox_from_mask(mask)
