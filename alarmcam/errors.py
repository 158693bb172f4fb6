"""Exception types raised by the detection engine."""


class AlarmCamError(Exception):
    """Base class for all alarmcam errors."""


class ConfigurationError(AlarmCamError, ValueError):
    """Detector parameters are invalid or inconsistent."""


class InputUnavailableError(AlarmCamError):
    """The frame source produced no frame, or a frame with zero dimensions."""


class DimensionMismatchError(AlarmCamError):
    """A frame's geometry differs from the geometry the state was built for."""

    def __init__(self, expected: tuple[int, int], actual: tuple[int, int]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Frame shape {actual[1]}x{actual[0]} does not match "
            f"initialized shape {expected[1]}x{expected[0]}"
        )


class EvidenceRenderingError(AlarmCamError):
    """An evidence image could not be rendered or encoded."""
