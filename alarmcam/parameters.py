import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from alarmcam.errors import ConfigurationError


@dataclass
class DetectorParameters:
    """
    Parameters used for detection, with serialization support.

    This dataclass holds every tunable constant of the detector so a run can
    be saved alongside its diagnostics trace and reproduced later.
    """

    # Driver cadence
    target_fps: float = 10.0

    # Background model
    alpha_bg: float = 0.02
    channel_order: str = "bgr"

    # Running statistics
    alpha_ema: float = 0.05

    # Pixel threshold: max(floor, round(ema_avg_diff * scale))
    pixel_threshold_floor: int = 8
    pixel_threshold_scale: float = 2.5

    # Changed-pixel ratio needed to count a frame as moving
    sensitivity_factor: float = 1.8
    base_sensitivity_ratio: float = 0.005
    min_sensitivity_ratio: float = 0.002
    max_sensitivity_ratio: float = 0.2

    # Sudden light: max(floor, round(max(ema * scale, ema + offset)))
    sudden_light_floor: int = 12
    sudden_light_scale: float = 3.0
    sudden_light_offset: float = 20.0

    # Debounce
    confirm_frames: int = 2

    # Post-detection hold
    pause_duration_ms: int = 3000
    pause_poll_interval_ms: int = 200
    occlusion_hold_ms: int | None = None  # None = same as pause_duration_ms

    # Evidence
    evidence_output_size: tuple[int, int] = (240, 160)
    bbox_min_area: int = 0  # 0 disables mask cleanup before the bbox

    @property
    def frame_interval_ms(self) -> float:
        return 1000.0 / self.target_fps

    @property
    def effective_occlusion_hold_ms(self) -> int:
        if self.occlusion_hold_ms is None:
            return self.pause_duration_ms
        return self.occlusion_hold_ms

    def validate(self) -> "DetectorParameters":
        """Raise ConfigurationError if any value is out of range."""
        if self.target_fps <= 0:
            raise ConfigurationError("target_fps must be positive")
        for name in ("alpha_bg", "alpha_ema"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ConfigurationError(f"{name} must be in (0, 1], got {value}")
        if self.confirm_frames < 1:
            raise ConfigurationError("confirm_frames must be at least 1")
        if self.pause_duration_ms < 0:
            raise ConfigurationError("pause_duration_ms must be non-negative")
        if self.pause_poll_interval_ms <= 0:
            raise ConfigurationError("pause_poll_interval_ms must be positive")
        if self.occlusion_hold_ms is not None and self.occlusion_hold_ms < 0:
            raise ConfigurationError("occlusion_hold_ms must be non-negative")
        if not 0.0 <= self.min_sensitivity_ratio <= self.max_sensitivity_ratio <= 1.0:
            raise ConfigurationError(
                "sensitivity ratio bounds must satisfy 0 <= min <= max <= 1"
            )
        if self.channel_order not in ("rgb", "bgr"):
            raise ConfigurationError(
                f"channel_order must be 'rgb' or 'bgr', got {self.channel_order!r}"
            )
        out_w, out_h = self.evidence_output_size
        if out_w <= 0 or out_h <= 0:
            raise ConfigurationError("evidence_output_size must be positive")
        if self.bbox_min_area < 0:
            raise ConfigurationError("bbox_min_area must be non-negative")
        return self

    def to_dict(self) -> dict:
        """Convert parameters to a JSON-serializable dictionary."""
        d = asdict(self)
        d["evidence_output_size"] = list(self.evidence_output_size)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "DetectorParameters":
        """Create DetectorParameters from a dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigurationError(f"Unknown detector parameters: {', '.join(unknown)}")

        # JSON has no tuples
        if d.get("evidence_output_size") is not None:
            d = d.copy()
            d["evidence_output_size"] = tuple(int(v) for v in d["evidence_output_size"])
        return cls(**d)

    def to_json(self) -> str:
        """Serialize parameters to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "DetectorParameters":
        """Deserialize parameters from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_json_file(cls, path: str | Path) -> "DetectorParameters":
        return cls.from_json(Path(path).read_text())
