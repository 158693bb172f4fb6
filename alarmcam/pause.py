from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)

PauseCallback = Callable[[bool, "float | None"], None]


class PauseState(Enum):
    """State machine states for the post-detection hold."""

    ACTIVE = "active"  # Frames are processed
    PAUSED = "paused"  # Frames are skipped until the deadline


class PauseController:
    """
    Holds processing for a fixed window after each detection.

    The deadline is measured from the emission and never extended: the
    detector does not process frames while paused, so nothing can retrigger
    it. Time is the driver's monotonic tick clock in milliseconds; poll() is
    called every tick and reports the remaining time through on_change at a
    coarse cadence.
    """

    def __init__(
        self,
        duration_ms: float = 3000,
        poll_interval_ms: float = 200,
        on_change: PauseCallback | None = None,
    ):
        self.duration_ms = duration_ms
        self.poll_interval_ms = poll_interval_ms
        self.on_change = on_change

        self._state = PauseState.ACTIVE
        self._end_ms: float | None = None
        self._last_notified_ms: float | None = None

    @property
    def state(self) -> PauseState:
        return self._state

    @property
    def end_ms(self) -> float | None:
        return self._end_ms

    def is_paused(self) -> bool:
        return self._state == PauseState.PAUSED

    def remaining_ms(self, now_ms: float) -> float:
        if self._end_ms is None:
            return 0.0
        return max(0.0, self._end_ms - now_ms)

    def start(self, now_ms: float) -> None:
        """Enter PAUSED for duration_ms from now_ms."""
        self._state = PauseState.PAUSED
        self._end_ms = now_ms + self.duration_ms
        self._last_notified_ms = now_ms
        logger.debug("Paused until %.0f ms", self._end_ms)
        self._notify(True, float(self.duration_ms))

    def poll(self, now_ms: float) -> bool:
        """
        Advance the state machine to now_ms.

        Returns:
            True if processing is still paused
        """
        if self._state == PauseState.ACTIVE:
            return False

        if now_ms >= self._end_ms:
            self._resume()
            return False

        if (
            self._last_notified_ms is None
            or now_ms - self._last_notified_ms >= self.poll_interval_ms
        ):
            self._last_notified_ms = now_ms
            self._notify(True, self.remaining_ms(now_ms))
        return True

    def clear(self) -> None:
        """Drop any pending deadline (stream stop or restart)."""
        if self._state == PauseState.PAUSED:
            self._resume()
        self._end_ms = None
        self._last_notified_ms = None

    def _resume(self) -> None:
        self._state = PauseState.ACTIVE
        self._end_ms = None
        self._last_notified_ms = None
        logger.debug("Pause ended")
        self._notify(False, None)

    def _notify(self, paused: bool, remaining_ms: float | None) -> None:
        if self.on_change is not None:
            self.on_change(paused, remaining_ms)
