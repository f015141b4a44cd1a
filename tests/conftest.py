import numpy as np
import cv2
import pytest

from sheet_music_ocr.backend import NumericBackend
from sheet_music_ocr.models import BoundingBox, DetectedNote, DetectedStaff, Position

PAGE_WIDTH = 1200


def draw_staff_lines(page, top, spacing, count=5):
    # 1px black lines spanning the full width
    for i in range(count):
        page[top + i * spacing, :] = 0
    return page


def blank_page(height=300, width=PAGE_WIDTH):
    return np.full((height, width), 255, dtype=np.uint8)


@pytest.fixture
def backend():
    return NumericBackend()


@pytest.fixture
def white_page():
    return blank_page()


@pytest.fixture
def single_staff_page():
    # Lines at y=100..180, spacing 20, one filled head on the middle line
    page = draw_staff_lines(blank_page(), top=100, spacing=20)
    cv2.circle(page, (600, 140), 10, 0, -1)
    return page


@pytest.fixture
def two_staff_page():
    page = blank_page(height=320)
    draw_staff_lines(page, top=50, spacing=15)
    draw_staff_lines(page, top=200, spacing=15)
    return page


@pytest.fixture
def ten_line_page():
    # Ten lines with identical spacing, no gap between the two staves
    return draw_staff_lines(blank_page(height=260), top=50, spacing=15, count=10)


@pytest.fixture
def staff():
    # Staff at y=100..180 with spacing 20, as drawn by single_staff_page
    lines = [100.0, 120.0, 140.0, 160.0, 180.0]
    return DetectedStaff(
        lines=lines,
        spacing=20.0,
        bounding_box=BoundingBox(x=0, y=100, width=PAGE_WIDTH, height=100),
    )


@pytest.fixture
def detected_notes():
    return [
        DetectedNote(pitch="C", octave=5, position=Position(x=50, y=10), confidence=0.9),
        DetectedNote(pitch="E", octave=4, position=Position(x=10, y=20), confidence=0.5),
    ]


@pytest.fixture
def small_bgr_image():
    # 2×2 BGR image: blue, green, red, black
    return np.array(
        [[[255, 0, 0], [0, 255, 0]], [[0, 0, 255], [0, 0, 0]]], dtype=np.uint8
    )


@pytest.fixture
def make_page():
    """Build a white page with staves drawn at the given (top, spacing) pairs."""

    def _make(staves, height=300, width=PAGE_WIDTH):
        page = blank_page(height=height, width=width)
        for top, spacing in staves:
            draw_staff_lines(page, top, spacing)
        return page

    return _make
