import json
import logging

import click
import pytest
from click.testing import CliRunner

from alarmcam.cli import TRACE_ZARR_NAME, _build_parameters, detect, write_results
from alarmcam.driver import DetectionRun
from alarmcam.logger_config import setup_logger
from alarmcam.parameters import DetectorParameters
from alarmcam.trace import SignalTrace


def test_overrides_apply_on_top_of_config(tmp_path):
    config = tmp_path / "params.json"
    config.write_text(json.dumps({"confirm_frames": 4, "pause_duration_ms": 1000}))

    params = _build_parameters(str(config), {"pause_duration_ms": 500, "target_fps": None})

    assert params.confirm_frames == 4
    assert params.pause_duration_ms == 500
    assert params.target_fps == 10.0


def test_invalid_configuration_is_reported(tmp_path):
    config = tmp_path / "params.json"
    config.write_text(json.dumps({"no_such_setting": 1}))

    with pytest.raises(click.ClickException):
        _build_parameters(str(config), {})

    with pytest.raises(click.ClickException):
        _build_parameters(None, {"confirm_frames": 0})


def test_missing_video_is_a_usage_error():
    result = CliRunner().invoke(detect, ["/nonexistent/video.mp4"])

    assert result.exit_code == 2


def test_unknown_log_level_is_a_usage_error(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"not a video")

    result = CliRunner().invoke(detect, [str(video), "--log-level", "loud"])

    assert result.exit_code == 2
    assert "--log-level" in result.output
    assert not isinstance(result.exception, ValueError)


def test_bad_log_level_from_environment_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "loud")

    logger = setup_logger("alarmcam.test_env_level")

    assert logger.level == logging.INFO


def test_write_results_skips_trace_without_ticks(tmp_path):
    run = DetectionRun(events=[], trace=SignalTrace.empty(), fps=25.0, reference_background=b"png")

    json_path, trace_path = write_results(run, tmp_path, DetectorParameters())

    assert json_path.exists()
    assert trace_path is None
    assert (tmp_path / "reference_background.png").read_bytes() == b"png"
    assert not (tmp_path / TRACE_ZARR_NAME).exists()
