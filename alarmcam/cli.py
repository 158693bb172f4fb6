from __future__ import annotations

from pathlib import Path

import click

from alarmcam.errors import ConfigurationError
from alarmcam.driver import DetectionRun, run_detection
from alarmcam.events import DetectionEvent
from alarmcam.logger_config import setup_logger
from alarmcam.parameters import DetectorParameters
from alarmcam.save_results import save_detections, save_trace_to_zarr

TRACE_ZARR_NAME = "signal_trace.zarr"
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _resolve_results_dir(video_path: str, output: str | None) -> Path:
    if output is not None:
        output_dir = Path(output).expanduser().resolve()
    else:
        video_path_path = Path(video_path).expanduser().resolve()
        output_dir = video_path_path.parent / f"{video_path_path.stem}_results"
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def _build_parameters(
    config: str | None,
    overrides: dict,
) -> DetectorParameters:
    try:
        params = (
            DetectorParameters.from_json_file(config) if config else DetectorParameters()
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(params, key, value)
        return params.validate()
    except (ConfigurationError, ValueError, OSError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc


def write_results(
    run: DetectionRun,
    output_dir: Path,
    params: DetectorParameters,
    *,
    save_images: bool = True,
) -> tuple[Path, Path | None]:
    """
    Write detections, the reference background and the signal trace.

    Returns:
        Path of detections.json and of the zarr trace (None when no tick ran)
    """
    json_path = save_detections(run.events, output_dir, save_images=save_images)

    if run.reference_background:
        (output_dir / "reference_background.png").write_bytes(run.reference_background)

    if not run.trace.n_ticks:
        return json_path, None
    trace_path = output_dir / TRACE_ZARR_NAME
    save_trace_to_zarr(run.trace, trace_path, run.fps, params)
    return json_path, trace_path


def _echo_event(event: DetectionEvent) -> None:
    kind = []
    if event.motion:
        kind.append("motion")
    if event.sudden_light:
        kind.append("sudden light")
    bbox = event.bbox
    where = f" at x={bbox.x} y={bbox.y} w={bbox.w} h={bbox.h}" if bbox else ""
    click.echo(
        f"  [{event.timestamp}] {' + '.join(kind)}{where} "
        f"(ratio={event.ratio:.4f}, meanDiff={event.mean_diff:.2f})"
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("video_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default=None, help="Directory for results (default: <video>_results)")
@click.option("--config", type=click.Path(exists=True, dir_okay=False), help="JSON file of detector parameters")
@click.option("--max-frames", type=int, default=None, help="Limit frames read from the video")
@click.option("--target-fps", type=float, default=None, help="Processing rate in frames per second")
@click.option("--confirm-frames", type=int, default=None, help="Consecutive frames needed to confirm motion")
@click.option("--pause-ms", "pause_duration_ms", type=int, default=None, help="Hold after each detection (ms)")
@click.option("--sensitivity-factor", type=float, default=None, help="Scale of the adaptive sensitivity ratio")
@click.option("--save-images/--no-save-images", default=True, show_default=True, help="Write PNG evidence for each detection")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: $LOG_LEVEL or INFO)",
)
def detect(
    video_path: str,
    output: str | None,
    config: str | None,
    max_frames: int | None,
    target_fps: float | None,
    confirm_frames: int | None,
    pause_duration_ms: int | None,
    sensitivity_factor: float | None,
    save_images: bool,
    log_level: str | None,
) -> None:
    """Run motion / light-change detection over VIDEO_PATH."""

    setup_logger("alarmcam", log_level)
    params = _build_parameters(
        config,
        {
            "target_fps": target_fps,
            "confirm_frames": confirm_frames,
            "pause_duration_ms": pause_duration_ms,
            "sensitivity_factor": sensitivity_factor,
        },
    )

    frame_msg = f" (max_frames={max_frames})" if max_frames is not None else ""
    click.echo(f"Running detection on {video_path}{frame_msg}...")
    try:
        run = run_detection(video_path, params, max_frames=max_frames, on_detection=_echo_event)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    output_dir = _resolve_results_dir(video_path, output)
    json_path, trace_path = write_results(run, output_dir, params, save_images=save_images)

    click.echo(
        f"Processed {run.frames_read} frames ({run.trace.n_ticks} ticks), "
        f"{len(run.events)} detections."
    )
    click.echo(f"Detections saved to {json_path}")
    if trace_path is not None:
        click.echo(f"Signal trace saved to {trace_path}")


if __name__ == "__main__":
    detect()
