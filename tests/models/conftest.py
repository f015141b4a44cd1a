import pytest
from sheet_music_ocr.models import BoundingBox, DetectedNote, DetectedStaff, Position


@pytest.fixture
def valid_staff():
    return DetectedStaff(
        lines=[10.0, 20.0, 30.0, 40.0, 50.0],
        spacing=10.0,
        bounding_box=BoundingBox(x=0, y=10, width=100, height=50),
    )


@pytest.fixture
def valid_note():
    return DetectedNote(
        pitch="B", octave=4, position=Position(x=5.0, y=30.0), confidence=0.8
    )
