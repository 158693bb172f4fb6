from __future__ import annotations

import numpy as np

# ITU-R BT.601 luma weights, in R, G, B order
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round non-negative values to the nearest integer, halves going up."""
    return np.floor(values + 0.5)


def to_grayscale(raster: np.ndarray, channel_order: str = "rgb") -> np.ndarray:
    """
    Convert a color raster to a single-channel intensity plane.

    Args:
        raster: (H, W) intensity plane, or (H, W, 3|4) uint8 color raster.
            A fourth (alpha) channel is ignored.
        channel_order: "rgb" or "bgr" (OpenCV capture order)

    Returns:
        (H, W) uint8 plane, a fresh array that never aliases the input
    """
    if raster.ndim == 2:
        return np.array(raster, dtype=np.uint8, copy=True)

    if raster.ndim != 3 or raster.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) raster, got {raster.shape}")

    if channel_order == "rgb":
        weights = LUMA_WEIGHTS
    elif channel_order == "bgr":
        weights = LUMA_WEIGHTS[::-1]
    else:
        raise ValueError(f"Unknown channel order: {channel_order!r}")

    color = raster[..., :3].astype(np.float64)
    luma = color @ weights
    return np.clip(round_half_up(luma), 0, 255).astype(np.uint8)


def mean_brightness(plane: np.ndarray | None) -> float:
    """Mean intensity of a plane; 0.0 for a missing or empty plane."""
    if plane is None or plane.size == 0:
        return 0.0
    return float(plane.mean())
