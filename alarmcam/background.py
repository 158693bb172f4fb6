"""
Running background model with an occlusion shield.

The background is a slow exponential blend of incoming intensity planes, so
gradual lighting drift is absorbed while short-lived foreground is not. After
a detection, the detected foreground can be shielded for a while so that the
object that triggered the alert is not blended into the background while it
is still in view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from alarmcam.errors import DimensionMismatchError

logger = logging.getLogger(__name__)


@dataclass
class OcclusionMask:
    """A foreground mask that shields background pixels until it expires."""

    mask: np.ndarray  # (H, W) bool, True = do not learn
    expires_at_ms: float

    def is_active(self, now_ms: float) -> bool:
        return now_ms < self.expires_at_ms


class BackgroundModel:
    """
    Owns the background intensity plane and evolves it in place.

    Usage:
        model = BackgroundModel(alpha=0.02)
        for now_ms, gray in frames:
            model.initialize_if_absent(gray)
            diff_against(model.plane)
            model.update(gray, now_ms)
    """

    def __init__(self, alpha: float = 0.02):
        """
        Args:
            alpha: Blend weight of the incoming frame per update
        """
        self.alpha = alpha

        self._background: np.ndarray | None = None
        self._occlusion: OcclusionMask | None = None

        # Scratch buffers, reallocated only when the geometry changes
        self._blend: np.ndarray | None = None
        self._mask_buffer: np.ndarray | None = None

    @property
    def is_initialized(self) -> bool:
        return self._background is not None

    @property
    def shape(self) -> tuple[int, int] | None:
        if self._background is None:
            return None
        return self._background.shape[:2]

    @property
    def plane(self) -> np.ndarray:
        """The live background plane (do not mutate)."""
        if self._background is None:
            raise ValueError("Background not initialized")
        return self._background

    @property
    def occlusion(self) -> OcclusionMask | None:
        return self._occlusion

    def snapshot(self) -> np.ndarray:
        """Copy of the current background."""
        return self.plane.copy()

    def initialize_if_absent(self, frame: np.ndarray) -> bool:
        """
        Use frame as the initial background if there is none yet.

        Returns:
            True if the background was initialized by this call
        """
        if self._background is not None:
            return False
        self._allocate(frame.shape[:2])
        np.copyto(self._background, frame)
        logger.debug("Background initialized at %dx%d", frame.shape[1], frame.shape[0])
        return True

    def reset(self, frame: np.ndarray) -> None:
        """Replace the background with frame and drop any occlusion mask."""
        if self._background is None or self._background.shape != frame.shape[:2]:
            self._allocate(frame.shape[:2])
        np.copyto(self._background, frame)
        self._occlusion = None

    def clear(self) -> None:
        """Forget the background and all buffers."""
        self._background = None
        self._occlusion = None
        self._blend = None
        self._mask_buffer = None

    def set_occlusion_mask(self, mask: np.ndarray, expires_at_ms: float) -> None:
        """
        Shield the pixels set in mask from learning until expires_at_ms.

        The mask is copied, so the caller may reuse its buffer.
        """
        if self._background is None:
            raise ValueError("Background not initialized")
        if mask.shape != self._background.shape:
            raise DimensionMismatchError(self._background.shape, mask.shape[:2])
        np.copyto(self._mask_buffer, mask.astype(bool, copy=False))
        self._occlusion = OcclusionMask(mask=self._mask_buffer, expires_at_ms=expires_at_ms)

    def active_occlusion(self, now_ms: float) -> OcclusionMask | None:
        """Return the occlusion mask if still active, discarding it once expired."""
        if self._occlusion is None:
            return None
        if not self._occlusion.is_active(now_ms):
            self._occlusion = None
            return None
        return self._occlusion

    def update(self, frame: np.ndarray, now_ms: float) -> None:
        """
        Blend frame into the background, skipping shielded pixels.

        bg = round((1 - alpha) * bg + alpha * frame) for every unmasked pixel.

        Args:
            frame: (H, W) uint8 intensity plane
            now_ms: Current tick time, used to expire the occlusion mask
        """
        if self._background is None:
            raise ValueError("Background not initialized")
        if frame.shape[:2] != self._background.shape:
            raise DimensionMismatchError(self._background.shape, frame.shape[:2])

        blend = self._blend
        np.multiply(self._background, 1.0 - self.alpha, out=blend)
        blend += self.alpha * frame.astype(np.float64)
        np.add(blend, 0.5, out=blend)
        np.floor(blend, out=blend)

        occlusion = self.active_occlusion(now_ms)
        if occlusion is None:
            np.copyto(self._background, blend, casting="unsafe")
        else:
            np.copyto(self._background, blend, casting="unsafe", where=~occlusion.mask)

    def _allocate(self, shape: tuple[int, int]) -> None:
        self._background = np.zeros(shape, dtype=np.uint8)
        self._blend = np.zeros(shape, dtype=np.float64)
        self._mask_buffer = np.zeros(shape, dtype=bool)
        self._occlusion = None
