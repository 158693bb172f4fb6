from __future__ import annotations

import cv2
import numpy as np


def clean_binary_mask(
    mask: np.ndarray,
    *,
    min_area: int = 5,
    kernel_size: int = 3,
    iterations: int = 1,
) -> np.ndarray:
    """
    Drop speckle from a foreground mask using morphology and area filtering.

    Accepts a bool or 0/255 uint8 mask and returns a bool mask of the same
    shape in which every remaining 8-connected component covers at least
    min_area pixels.
    """
    if mask is None or mask.size == 0:
        return mask

    binary = mask.astype(np.uint8) * 255 if mask.dtype == bool else mask.astype(np.uint8)

    kernel = np.ones((kernel_size, kernel_size), dtype=np.uint8)
    cleaned = cv2.morphologyEx(binary, cv2.MORPH_OPEN, kernel, iterations=iterations)
    cleaned = cv2.morphologyEx(cleaned, cv2.MORPH_CLOSE, kernel, iterations=iterations)

    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(cleaned, connectivity=8)
    if num_labels <= 1:
        return cleaned > 0

    keep = np.zeros(num_labels, dtype=bool)
    keep[1:] = stats[1:, cv2.CC_STAT_AREA] >= min_area
    return keep[labels]
