import pytest

from sheet_music_ocr.pitch import (
    BASS_PITCHES,
    TREBLE_PITCHES,
    map_pitch,
    pitch_to_midi,
    position_to_pitch,
    staff_position,
)


def test_tables_cover_nine_positions():
    assert len(TREBLE_PITCHES) == 9
    assert len(BASS_PITCHES) == 9
    assert TREBLE_PITCHES[0] == ("E", 4)
    assert TREBLE_PITCHES[-1] == ("F", 5)
    assert BASS_PITCHES[0] == ("G", 2)
    assert BASS_PITCHES[-1] == ("A", 3)


@pytest.mark.parametrize(
    "y,expected",
    [(180, 0), (170, 1), (140, 4), (100, 8), (90, 9), (200, -2), (175, 1), (185, 0)],
)
def test_staff_position(staff, y, expected):
    assert staff_position(y, staff) == expected


@pytest.mark.parametrize(
    "position,clef,expected",
    [
        (0, "treble", ("E", 4)),
        (4, "treble", ("B", 4)),
        (8, "treble", ("F", 5)),
        (-3, "treble", ("E", 4)),
        (12, "treble", ("F", 5)),
        (0, "bass", ("G", 2)),
        (4, "bass", ("D", 3)),
        (8, "bass", ("A", 3)),
    ],
)
def test_position_to_pitch(position, clef, expected):
    assert position_to_pitch(position, clef) == expected


def test_pitch_rises_as_y_falls(staff):
    # one half-spacing step per position across the staff
    ys = [180 - 10 * k for k in range(9)]
    positions = [staff_position(y, staff) for y in ys]
    assert positions == list(range(9))
    midi = [pitch_to_midi(*map_pitch(y, staff)) for y in ys]
    assert midi == sorted(midi)
    assert len(set(midi)) == 9


def test_notes_outside_staff_are_clamped(staff):
    assert map_pitch(20, staff) == ("F", 5)
    assert map_pitch(290, staff) == ("E", 4)
    assert map_pitch(290, staff, "bass") == ("G", 2)


@pytest.mark.parametrize(
    "pitch,octave,number",
    [("C", 4, 60), ("A", 4, 69), ("B", 4, 71), ("E", 4, 64), ("G", 2, 43), ("F", 5, 77)],
)
def test_pitch_to_midi(pitch, octave, number):
    assert pitch_to_midi(pitch, octave) == number
