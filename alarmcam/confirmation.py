class MotionConfirmer:
    """
    Debounces the changed-pixel ratio over consecutive frames.

    Motion is confirmed while the ratio has exceeded the sensitivity ratio on
    at least confirm_frames consecutive ticks. Any tick below the ratio drops
    the run back to zero.
    """

    def __init__(self, confirm_frames: int = 2):
        self.confirm_frames = max(1, int(confirm_frames))
        self._counter = 0

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def motion_confirmed(self) -> bool:
        return self._counter >= self.confirm_frames

    def update(self, changed_ratio: float, sensitivity_ratio: float) -> bool:
        if changed_ratio > sensitivity_ratio:
            self._counter += 1
        else:
            self._counter = 0
        return self.motion_confirmed

    def reset(self) -> None:
        self._counter = 0


class SuddenLightDetector:
    """Flags a global brightness jump on a single frame, without debounce."""

    @staticmethod
    def detect(mean_diff: float, sudden_light_threshold: float) -> bool:
        return mean_diff > sudden_light_threshold
