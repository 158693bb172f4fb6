import numpy as np
import pytest

from alarmcam.errors import DimensionMismatchError
from alarmcam.segmentation import ForegroundSegmenter


def test_identical_frames_have_no_foreground():
    plane = np.full((10, 10), 128, dtype=np.uint8)
    segmenter = ForegroundSegmenter()

    assert segmenter.difference(plane, plane.copy()) == 0.0
    result = segmenter.segment(8)

    assert result.changed_count == 0
    assert result.changed_ratio == 0.0
    assert not result.mask.any()


def test_block_change_is_segmented():
    background = np.full((10, 10), 128, dtype=np.uint8)
    current = background.copy()
    current[3:5, 2:7] = 200

    segmenter = ForegroundSegmenter()
    avg = segmenter.difference(current, background)
    result = segmenter.segment(8)

    assert avg == pytest.approx(10 * 72 / 100)
    assert result.changed_count == 10
    assert result.changed_ratio == pytest.approx(0.1)
    assert result.mask[3:5, 2:7].all()
    assert result.mask.sum() == 10


def test_difference_equal_to_threshold_is_not_foreground():
    background = np.full((4, 4), 128, dtype=np.uint8)
    current = np.full((4, 4), 136, dtype=np.uint8)

    segmenter = ForegroundSegmenter()
    segmenter.difference(current, background)

    assert segmenter.segment(8).changed_count == 0
    assert segmenter.segment(7).changed_count == 16


def test_difference_does_not_wrap_around():
    background = np.full((2, 2), 255, dtype=np.uint8)
    current = np.zeros((2, 2), dtype=np.uint8)

    segmenter = ForegroundSegmenter()

    assert segmenter.difference(current, background) == pytest.approx(255.0)


def test_segment_requires_difference_first():
    with pytest.raises(ValueError):
        ForegroundSegmenter().segment(8)


def test_shape_mismatch_raises():
    segmenter = ForegroundSegmenter()
    with pytest.raises(DimensionMismatchError):
        segmenter.difference(np.zeros((4, 4), np.uint8), np.zeros((5, 5), np.uint8))
