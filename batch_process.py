#!/usr/bin/env python3
"""Run detection over every video in a directory and tabulate the results."""

from __future__ import annotations

import csv
from pathlib import Path

import click

from alarmcam.cli import _build_parameters, write_results
from alarmcam.driver import DetectionRun, run_detection
from alarmcam.logger_config import setup_logger

SUMMARY_COLUMNS = ["video", "frames", "ticks", "detections", "motion", "sudden_light", "status"]


def summarize_run(video: Path, run: DetectionRun) -> dict:
    return {
        "video": video.name,
        "frames": run.frames_read,
        "ticks": run.trace.n_ticks,
        "detections": len(run.events),
        "motion": sum(1 for e in run.events if e.motion),
        "sudden_light": sum(1 for e in run.events if e.sudden_light),
        "status": "ok",
    }


def write_summary(rows: list[dict], path: Path) -> None:
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=SUMMARY_COLUMNS)
        writer.writeheader()
        writer.writerows(rows)


@click.command()
@click.argument('directory', type=click.Path(exists=True, file_okay=False))
@click.option('--pattern', default='*.mp4', help='Glob pattern for videos')
@click.option('--output-root', default='./batch_results', help='Directory to store results')
@click.option('--config', type=click.Path(exists=True, dir_okay=False), help='JSON file of detector parameters')
@click.option('--max-frames', type=int, default=None, help='Limit frames read from each video')
@click.option('--save-images/--no-save-images', default=False, show_default=True, help='Write PNG evidence')
def batch_process(
    directory: str,
    pattern: str,
    output_root: str,
    config: str | None,
    max_frames: int | None,
    save_images: bool,
) -> None:
    """Run detection on every video inside DIRECTORY with one parameter set."""

    setup_logger("alarmcam", "WARNING")
    params = _build_parameters(config, {})

    videos = sorted(Path(directory).glob(pattern))
    if not videos:
        click.echo(f"No videos found in {directory} matching pattern '{pattern}'.")
        return

    output_root_path = Path(output_root)
    output_root_path.mkdir(parents=True, exist_ok=True)
    click.echo(f"Processing {len(videos)} videos from {directory}...")

    rows = []
    for video in videos:
        try:
            run = run_detection(str(video), params, max_frames=max_frames)
        except ValueError as exc:
            click.echo(f"  {video.name}: failed ({exc})")
            rows.append({"video": video.name, "status": f"failed: {exc}"})
            continue

        video_output = output_root_path / video.stem
        video_output.mkdir(parents=True, exist_ok=True)
        write_results(run, video_output, params, save_images=save_images)

        row = summarize_run(video, run)
        rows.append(row)
        click.echo(
            f"  {video.name}: {row['detections']} detections "
            f"(motion {row['motion']}, sudden light {row['sudden_light']}) in {row['frames']} frames"
        )

    summary_path = output_root_path / "batch_summary.csv"
    write_summary(rows, summary_path)
    failures = sum(1 for row in rows if row["status"] != "ok")
    click.echo(f"\nDone: {len(rows) - failures} succeeded, {failures} failed. Summary: {summary_path}")


if __name__ == '__main__':
    batch_process()
