from __future__ import annotations

from pathlib import Path

import click

from alarmcam.analysis.signal_analysis import (
    TraceSummary,
    load_trace,
    save_signal_plot,
    save_trace_csv,
    summarize_trace,
)
from alarmcam.cli import TRACE_ZARR_NAME


def _resolve_results(target_path: str | Path) -> tuple[Path, Path]:
    path = Path(target_path).expanduser().resolve()

    if path.suffix == ".zarr":
        zarr_path = path
        results_dir = path.parent
    elif path.is_file():
        results_dir = path.parent / f"{path.stem}_results"
        zarr_path = results_dir / TRACE_ZARR_NAME
    else:
        zarr_path = path / TRACE_ZARR_NAME
        results_dir = path

    if not zarr_path.exists():
        raise click.ClickException(
            f"Expected a signal trace at {zarr_path}, but it does not exist. Run detection first."
        )

    return zarr_path, results_dir


def _print_summary(summary: TraceSummary) -> None:
    click.echo(
        f"Ticks: {summary.n_ticks} over {summary.duration_s:.1f} s | "
        f"Detections: {summary.n_emissions} "
        f"(motion {summary.n_motion_emissions}, sudden light {summary.n_sudden_light_emissions})"
    )
    click.echo(f"Changed ratio: mean {summary.mean_ratio:.4f} | max {summary.max_ratio:.4f}")
    if summary.final_pixel_threshold is not None:
        click.echo(
            f"Final thresholds: pixel {summary.final_pixel_threshold} | "
            f"sensitivity {summary.final_sensitivity_ratio:.4f}"
        )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("target", type=click.Path(exists=True))
@click.option("--no-plot", is_flag=True, help="Skip saving signal_trace.png (still shown if --show).")
@click.option("--no-csv", is_flag=True, help="Skip saving signal_trace.csv.")
@click.option("--show/--no-show", default=False, help="Display the plot interactively.")
def main(target: str, no_plot: bool, no_csv: bool, show: bool) -> None:
    """Summarize and plot the detector signal trace of a video or results directory."""

    zarr_path, results_dir = _resolve_results(target)
    click.echo(f"Using results from {zarr_path}")

    trace, _ = load_trace(zarr_path)
    if trace.n_ticks == 0:
        raise click.ClickException("The signal trace is empty.")

    _print_summary(summarize_trace(trace))

    plot_path = None if no_plot else results_dir / "signal_trace.png"
    csv_path = None if no_csv else results_dir / "signal_trace.csv"

    if plot_path is not None or show:
        save_signal_plot(trace, output_path=plot_path, show=show)
        if plot_path is not None:
            click.echo(f"Signal plot saved to {plot_path}")

    if csv_path is not None:
        save_trace_csv(trace, csv_path)
        click.echo(f"Signal data saved to {csv_path}")


if __name__ == "__main__":
    main()
