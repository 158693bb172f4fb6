"""
Evidence images attached to detection events.

The detector never owns a rendering surface: it hands planes to an
EvidenceSink and stores whatever opaque handle the sink returns. The default
sink encodes PNG bytes with OpenCV.
"""

from __future__ import annotations

import base64
from typing import Any, Protocol

import cv2
import numpy as np

from alarmcam.decision import BoundingBox
from alarmcam.errors import EvidenceRenderingError

BORDER_COLOR = (0, 0, 255)  # Red (BGR)
BORDER_THICKNESS = 3


class EvidenceSink(Protocol):
    def capture(self, image: np.ndarray) -> Any:
        """Turn an (H, W) or (H, W, 3) BGR uint8 image into an evidence handle."""
        ...


class PngEvidenceSink:
    """Encodes evidence images as PNG bytes."""

    def __init__(self, compression: int = 3):
        self.compression = compression

    def capture(self, image: np.ndarray) -> bytes:
        if image is None or image.size == 0:
            raise EvidenceRenderingError("Cannot encode an empty image")
        try:
            ok, buffer = cv2.imencode(
                ".png", image, [cv2.IMWRITE_PNG_COMPRESSION, self.compression]
            )
        except cv2.error as exc:
            raise EvidenceRenderingError(f"PNG encoding failed: {exc}") from exc
        if not ok:
            raise EvidenceRenderingError("PNG encoding failed")
        return buffer.tobytes()


def png_data_url(data: bytes) -> str:
    """Wrap PNG bytes in a data URL; empty input gives an empty string."""
    if not data:
        return ""
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


def render_marked_region(
    plane: np.ndarray,
    bbox: BoundingBox | None,
    output_size: tuple[int, int] = (240, 160),
) -> np.ndarray:
    """
    Crop the box out of a plane, scale it to a fixed size and frame it in red.

    Args:
        plane: (H, W) uint8 intensity plane
        bbox: Region to crop, or None for the full frame
        output_size: (width, height) of the result

    Returns:
        (out_h, out_w, 3) BGR uint8 image with a red border
    """
    if plane is None or plane.size == 0:
        raise EvidenceRenderingError("No frame to mark")

    height, width = plane.shape[:2]
    if bbox is None:
        crop = plane
    else:
        x1 = min(max(0, bbox.x), width - 1)
        y1 = min(max(0, bbox.y), height - 1)
        x2 = min(width, x1 + max(1, bbox.w))
        y2 = min(height, y1 + max(1, bbox.h))
        crop = plane[y1:y2, x1:x2]

    out_w, out_h = output_size
    try:
        scaled = cv2.resize(crop, (out_w, out_h), interpolation=cv2.INTER_LINEAR)
        marked = cv2.cvtColor(scaled, cv2.COLOR_GRAY2BGR)
        cv2.rectangle(
            marked,
            (1, 1),
            (out_w - 2, out_h - 2),
            BORDER_COLOR,
            BORDER_THICKNESS,
        )
    except cv2.error as exc:
        raise EvidenceRenderingError(f"Marking failed: {exc}") from exc
    return marked
