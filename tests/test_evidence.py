import cv2
import numpy as np
import pytest

from alarmcam.decision import BoundingBox
from alarmcam.errors import EvidenceRenderingError
from alarmcam.evidence import PngEvidenceSink, png_data_url, render_marked_region


def test_png_sink_encodes_decodable_png():
    plane = np.full((20, 30), 90, dtype=np.uint8)
    data = PngEvidenceSink().capture(plane)

    assert data.startswith(b"\x89PNG")
    decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    assert decoded.shape == (20, 30)
    assert np.all(decoded == 90)


def test_png_sink_rejects_empty_image():
    with pytest.raises(EvidenceRenderingError):
        PngEvidenceSink().capture(np.zeros((0, 0), dtype=np.uint8))


def test_marked_region_has_fixed_size_and_red_border():
    plane = np.full((100, 100), 50, dtype=np.uint8)
    marked = render_marked_region(plane, BoundingBox(40, 40, 20, 20), (240, 160))

    assert marked.shape == (160, 240, 3)
    assert tuple(marked[1, 1]) == (0, 0, 255)
    assert tuple(marked[80, 120]) == (50, 50, 50)


def test_marked_region_crops_the_box():
    plane = np.zeros((100, 100), dtype=np.uint8)
    plane[40:60, 40:60] = 200

    marked = render_marked_region(plane, BoundingBox(40, 40, 20, 20), (240, 160))

    assert tuple(marked[80, 120]) == (200, 200, 200)


def test_marked_region_without_box_uses_full_frame():
    plane = np.zeros((100, 100), dtype=np.uint8)
    plane[:, 50:] = 255

    marked = render_marked_region(plane, None, (200, 100))

    assert marked.shape == (100, 200, 3)
    assert tuple(marked[50, 20]) == (0, 0, 0)
    assert tuple(marked[50, 180]) == (255, 255, 255)


def test_marked_region_requires_a_frame():
    with pytest.raises(EvidenceRenderingError):
        render_marked_region(np.zeros((0, 0), dtype=np.uint8), None)


def test_data_url():
    assert png_data_url(b"") == ""
    assert png_data_url(b"\x89PNG").startswith("data:image/png;base64,")
