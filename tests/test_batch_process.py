import csv

from click.testing import CliRunner

from batch_process import batch_process, summarize_run
from alarmcam.decision import BoundingBox
from alarmcam.driver import DetectionRun
from alarmcam.events import DetectionEvent
from alarmcam.trace import SignalTrace


def _event(event_id, motion=False, sudden_light=False):
    return DetectionEvent(
        id=event_id,
        timestamp="2023-11-14T22:13:20+00:00",
        sudden_light=sudden_light,
        motion=motion,
        ratio=0.04,
        mean_diff=1.0,
        before_image=b"",
        after_image=b"",
        background_image=b"",
        marked_image=b"",
        bbox=BoundingBox(0, 0, 2, 2) if motion else None,
    )


def test_summarize_run_counts_detection_kinds(tmp_path):
    run = DetectionRun(
        events=[_event(1, motion=True), _event(2, sudden_light=True), _event(3, motion=True, sudden_light=True)],
        trace=SignalTrace.empty(),
        fps=25.0,
        frames_read=40,
    )

    row = summarize_run(tmp_path / "door.mp4", run)

    assert row["video"] == "door.mp4"
    assert row["frames"] == 40
    assert row["detections"] == 3
    assert row["motion"] == 2
    assert row["sudden_light"] == 2
    assert row["status"] == "ok"


def test_unreadable_videos_are_reported_in_summary(tmp_path):
    videos = tmp_path / "videos"
    videos.mkdir()
    (videos / "broken.mp4").write_bytes(b"not a video")
    output_root = tmp_path / "out"

    result = CliRunner().invoke(batch_process, [str(videos), "--output-root", str(output_root)])

    assert result.exit_code == 0
    with open(output_root / "batch_summary.csv", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["video"] == "broken.mp4"
    assert rows[0]["status"].startswith("failed")


def test_empty_directory_writes_nothing(tmp_path):
    output_root = tmp_path / "out"

    result = CliRunner().invoke(batch_process, [str(tmp_path), "--output-root", str(output_root)])

    assert result.exit_code == 0
    assert "No videos found" in result.output
    assert not output_root.exists()
