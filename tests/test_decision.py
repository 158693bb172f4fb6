import numpy as np

from alarmcam.decision import BoundingBox, DetectionDecider, bbox_from_mask


def test_bbox_is_tight():
    mask = np.zeros((100, 100), dtype=bool)
    mask[40:60, 40:60] = True

    assert bbox_from_mask(mask) == BoundingBox(x=40, y=40, w=20, h=20)


def test_bbox_of_scattered_pixels():
    mask = np.zeros((10, 12), dtype=bool)
    mask[1, 2] = True
    mask[7, 9] = True

    assert bbox_from_mask(mask) == BoundingBox(x=2, y=1, w=8, h=7)


def test_empty_mask_has_no_bbox():
    assert bbox_from_mask(np.zeros((5, 5), dtype=bool)) is None
    assert bbox_from_mask(None) is None


def test_no_emission_without_signals():
    mask = np.ones((5, 5), dtype=bool)
    decision = DetectionDecider().decide(False, False, mask)

    assert decision.should_emit is False
    assert decision.bbox is None


def test_light_event_with_empty_mask_has_no_bbox():
    decision = DetectionDecider().decide(True, False, np.zeros((5, 5), dtype=bool))

    assert decision.should_emit is True
    assert decision.sudden_light is True
    assert decision.motion is False
    assert decision.bbox is None


def test_motion_event_gets_bbox():
    mask = np.zeros((20, 20), dtype=bool)
    mask[5:8, 10:15] = True
    decision = DetectionDecider().decide(False, True, mask)

    assert decision.should_emit is True
    assert decision.bbox == BoundingBox(x=10, y=5, w=5, h=3)


def test_min_area_drops_speckle_from_bbox():
    mask = np.zeros((30, 30), dtype=bool)
    mask[10:16, 12:18] = True
    mask[2, 27] = True

    decider = DetectionDecider(bbox_min_area=5)
    decision = decider.decide(False, True, mask)

    assert decision.bbox == BoundingBox(x=12, y=10, w=6, h=6)
    # Original mask is untouched
    assert mask[2, 27]


def test_min_area_on_pure_speckle_gives_no_bbox():
    mask = np.zeros((30, 30), dtype=bool)
    mask[2, 2] = True
    mask[20, 25] = True

    assert DetectionDecider(bbox_min_area=5).decide(False, True, mask).bbox is None
