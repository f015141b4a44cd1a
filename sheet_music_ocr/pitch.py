"""Mapping from vertical staff positions to pitches.

A staff position counts diatonic steps upwards from the bottom staff line:
0 is the bottom line, 1 the space above it, 4 the middle line and 8 the top
line. Only these nine positions are representable; anything further away
from the staff is clamped to the nearest end, so ledger-line notes are
reported at the edge of the staff.
"""

from sheet_music_ocr.models import Clef, DetectedStaff
from sheet_music_ocr.staff import round_half_up

MIN_POSITION = 0
MAX_POSITION = 8

TREBLE_PITCHES: list[tuple[str, int]] = [
    ("E", 4),
    ("F", 4),
    ("G", 4),
    ("A", 4),
    ("B", 4),
    ("C", 5),
    ("D", 5),
    ("E", 5),
    ("F", 5),
]

BASS_PITCHES: list[tuple[str, int]] = [
    ("G", 2),
    ("A", 2),
    ("B", 2),
    ("C", 3),
    ("D", 3),
    ("E", 3),
    ("F", 3),
    ("G", 3),
    ("A", 3),
]

CLEF_TABLES: dict[str, list[tuple[str, int]]] = {
    "treble": TREBLE_PITCHES,
    "bass": BASS_PITCHES,
}

SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def staff_position(y: float, staff: DetectedStaff) -> int:
    """Convert a y-coordinate into a staff position.

    Every half spacing above the bottom line is one diatonic step. The
    result is not clamped.

    Args:
        y: Vertical pixel coordinate (grows downwards).
        staff: Staff the coordinate belongs to.

    Returns:
        Signed number of steps above the bottom line.
    """
    half_spacing = staff.spacing / 2
    return round_half_up((staff.bottom - y) / half_spacing)


def position_to_pitch(position: int, clef: Clef = "treble") -> tuple[str, int]:
    """Look up the pitch of a staff position.

    Args:
        position: Staff position; values outside 0..8 are clamped.
        clef: Clef whose table to use.

    Returns:
        Tuple of (pitch letter, octave).
    """
    table = CLEF_TABLES[clef]
    clamped = max(MIN_POSITION, min(MAX_POSITION, position))
    return table[clamped]


def map_pitch(y: float, staff: DetectedStaff, clef: Clef = "treble") -> tuple[str, int]:
    """Pitch of a note head centred at `y` on `staff`."""
    return position_to_pitch(staff_position(y, staff), clef)


def pitch_to_midi(pitch: str, octave: int) -> int:
    """MIDI note number of a natural pitch, with C4 = 60."""
    return (octave + 1) * 12 + SEMITONES[pitch]
