from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from alarmcam.save_results import load_trace_from_zarr, read_trace_fps
from alarmcam.trace import SignalTrace


@dataclass
class TraceSummary:
    n_ticks: int
    n_emissions: int
    n_motion_emissions: int
    n_sudden_light_emissions: int
    duration_s: float
    mean_ratio: float
    max_ratio: float
    final_pixel_threshold: int | None
    final_sensitivity_ratio: float | None


def summarize_trace(trace: SignalTrace) -> TraceSummary:
    """Counts and ranges of a recorded trace."""

    emitted = trace.emitted.astype(bool)
    if trace.n_ticks:
        duration_s = float(trace.timestamp_ms[-1] - trace.timestamp_ms[0]) / 1000.0
        mean_ratio = float(np.mean(trace.ratio))
        max_ratio = float(np.max(trace.ratio))
        final_pixel = int(trace.pixel_threshold[-1])
        final_sensitivity = float(trace.sensitivity_ratio[-1])
    else:
        duration_s = 0.0
        mean_ratio = max_ratio = 0.0
        final_pixel = None
        final_sensitivity = None

    return TraceSummary(
        n_ticks=trace.n_ticks,
        n_emissions=int(emitted.sum()),
        n_motion_emissions=int((emitted & trace.motion).sum()),
        n_sudden_light_emissions=int((emitted & trace.sudden_light).sum()),
        duration_s=duration_s,
        mean_ratio=mean_ratio,
        max_ratio=max_ratio,
        final_pixel_threshold=final_pixel,
        final_sensitivity_ratio=final_sensitivity,
    )


def load_trace(zarr_path: str | Path) -> tuple[SignalTrace, float]:
    """Load a saved trace and its source fps."""
    return load_trace_from_zarr(zarr_path), read_trace_fps(zarr_path)


def save_signal_plot(
    trace: SignalTrace,
    *,
    output_path: str | Path | None,
    show: bool,
) -> None:
    """Plot the changed ratio and brightness delta against their adaptive thresholds."""

    time_s = (trace.timestamp_ms - trace.timestamp_ms[0]) / 1000.0 if trace.n_ticks else trace.timestamp_ms
    emitted = trace.emission_indices

    fig, (ax_ratio, ax_light) = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    ax_ratio.plot(time_s, trace.ratio, label="changed ratio")
    ax_ratio.plot(time_s, trace.sensitivity_ratio, "--", label="sensitivity ratio")
    ax_ratio.scatter(time_s[emitted], trace.ratio[emitted], color="red", zorder=3, label="emitted")
    ax_ratio.set_ylabel("Ratio")
    ax_ratio.grid(True, alpha=0.3)
    ax_ratio.legend()

    ax_light.plot(time_s, trace.mean_diff, label="mean brightness delta")
    ax_light.plot(time_s, trace.sudden_light_threshold, "--", label="sudden light threshold")
    ax_light.scatter(time_s[emitted], trace.mean_diff[emitted], color="red", zorder=3)
    ax_light.set_ylabel("Intensity")
    ax_light.set_xlabel("Time (s)")
    ax_light.grid(True, alpha=0.3)
    ax_light.legend()

    fig.suptitle("Detector signals")

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)


def save_trace_csv(trace: SignalTrace, output_path: str | Path) -> None:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = np.column_stack(
        [
            trace.timestamp_ms,
            trace.ratio,
            trace.sensitivity_ratio,
            trace.pixel_threshold,
            trace.mean_diff,
            trace.sudden_light_threshold,
            trace.motion_counter,
            trace.emitted.astype(int),
        ]
    )
    header = (
        "timestamp_ms,ratio,sensitivity_ratio,pixel_threshold,"
        "mean_diff,sudden_light_threshold,motion_counter,emitted"
    )
    np.savetxt(output_path, data, delimiter=",", header=header, comments="")
