import pytest

from alarmcam.parameters import DetectorParameters
from alarmcam.thresholds import AdaptiveThresholdEstimator, RunningStatistic


def test_first_sample_seeds_the_average():
    stat = RunningStatistic(alpha=0.05)
    assert not stat.is_initialized

    assert stat.update(10.0) == pytest.approx(10.0)
    assert stat.update(20.0) == pytest.approx(10.5)


def test_zero_first_sample_still_counts_as_seed():
    stat = RunningStatistic(alpha=0.05)
    stat.update(0.0)

    assert stat.is_initialized
    assert stat.update(60.0) == pytest.approx(3.0)


def test_reset_returns_to_unseeded():
    stat = RunningStatistic(alpha=0.05)
    stat.update(5.0)
    stat.reset()
    stat.update(40.0)

    assert stat.value == pytest.approx(40.0)


def test_calm_scene_settles_on_floors():
    estimator = AdaptiveThresholdEstimator()
    thresholds = estimator.update(0.0, 0.0)

    assert thresholds.pixel_threshold == 8
    assert thresholds.sensitivity_ratio == pytest.approx(0.005)
    assert thresholds.sudden_light_threshold == 20


def test_noisy_scene_raises_thresholds():
    estimator = AdaptiveThresholdEstimator()
    thresholds = estimator.update(10.0, 15.0)

    assert thresholds.pixel_threshold == 25
    assert thresholds.sensitivity_ratio == pytest.approx(1.8 * (10 / 11) * 0.01 + 0.005)
    assert thresholds.sudden_light_threshold == 45


def test_sudden_light_threshold_uses_offset_for_small_flicker():
    estimator = AdaptiveThresholdEstimator()

    assert estimator.sudden_light_threshold(2.0) == 22
    assert estimator.sudden_light_threshold(15.0) == 45


def test_sudden_light_floor():
    params = DetectorParameters(sudden_light_offset=0.0)
    estimator = AdaptiveThresholdEstimator(params)

    assert estimator.sudden_light_threshold(1.0) == 12


def test_pixel_threshold_rounds_half_up():
    estimator = AdaptiveThresholdEstimator()

    # 5.0 * 2.5 = 12.5
    assert estimator.pixel_threshold(5.0) == 13


def test_sensitivity_ratio_is_clamped():
    high = AdaptiveThresholdEstimator(DetectorParameters(sensitivity_factor=1000.0))
    assert high.sensitivity_ratio(50.0) == pytest.approx(0.2)

    low = AdaptiveThresholdEstimator(
        DetectorParameters(sensitivity_factor=0.0, base_sensitivity_ratio=0.0)
    )
    assert low.sensitivity_ratio(50.0) == pytest.approx(0.002)


def test_statistics_follow_the_ema():
    estimator = AdaptiveThresholdEstimator()
    estimator.update(4.0, 1.0)
    estimator.update(8.0, 3.0)

    assert estimator.avg_diff.value == pytest.approx(4.0 * 0.95 + 8.0 * 0.05)
    assert estimator.mean_diff.value == pytest.approx(1.0 * 0.95 + 3.0 * 0.05)
