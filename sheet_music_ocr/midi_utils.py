"""MIDI generation from recognised notes.

This module turns the notes of an OcrResult into a playable sequence: notes
are placed one after another in left-to-right order, each lasting its
(default) duration, and the sequence can be written out as a standard MIDI
file.
"""

import io
import logging

import mido
from mido import MidiFile, MidiTrack, Message, MetaMessage

from sheet_music_ocr.models import DetectedNote, MidiEvent
from sheet_music_ocr.pitch import pitch_to_midi

logger = logging.getLogger(__name__)

# Length of each note value in quarter notes
DURATION_BEATS: dict[str, float] = {
    "whole": 4.0,
    "half": 2.0,
    "quarter": 1.0,
    "eighth": 0.5,
    "sixteenth": 0.25,
    "dotted-half": 3.0,
    "dotted-quarter": 1.5,
    "dotted-eighth": 0.75,
}


def duration_to_ticks(duration: str, ticks_per_beat: int = 480) -> int:
    """Convert a note value name to MIDI ticks.

    Unknown names fall back to a quarter note.
    """
    beats = DURATION_BEATS.get(duration, 1.0)
    return max(1, int(round(beats * ticks_per_beat)))


def build_note_events(
    notes: list[DetectedNote], ticks_per_beat: int = 480
) -> list[MidiEvent]:
    """Place detected notes sequentially on a timeline.

    Notes are ordered by their x position and each starts when the previous
    one ends.

    Args:
        notes: Detected notes, typically `OcrResult.detected_notes`.
        ticks_per_beat: MIDI ticks per quarter note (default 480).

    Returns:
        List of MidiEvent objects sorted by start_tick, or an empty list if
        no notes were provided.
    """
    events: list[MidiEvent] = []
    tick = 0
    for note in sorted(notes, key=lambda n: n.position.x):
        duration_tick = duration_to_ticks(note.duration, ticks_per_beat)
        events.append(
            MidiEvent(
                note=pitch_to_midi(note.pitch, note.octave),
                start_tick=tick,
                duration_tick=duration_tick,
            )
        )
        tick += duration_tick
    return events


def write_midi_file(
    events: list[MidiEvent], tempo_bpm: int = 120, ticks_per_beat: int = 480
) -> bytes:
    """Generate a MIDI file from a list of MIDI events.

    Creates a standard MIDI file with a single track containing all the
    provided events, converted to note_on/note_off message pairs.

    Args:
        events: List of MidiEvent objects to include in the file.
        tempo_bpm: Tempo in beats per minute (default 120).
        ticks_per_beat: MIDI ticks per quarter note (default 480).

    Returns:
        MIDI file data as bytes.
    """
    midi_file = MidiFile(ticks_per_beat=ticks_per_beat)
    track = MidiTrack()
    midi_file.tracks.append(track)

    track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(tempo_bpm), time=0))

    # note_off sorts before note_on at the same tick so repeated pitches restart
    timeline: list[tuple[int, int, str, int]] = []
    for event in events:
        timeline.append((event.start_tick, 1, "note_on", event.note))
        timeline.append((event.start_tick + event.duration_tick, 0, "note_off", event.note))
    timeline.sort(key=lambda item: (item[0], item[1]))

    previous_tick = 0
    for tick, _, message_type, note in timeline:
        track.append(Message(message_type, note=note, velocity=64, time=tick - previous_tick))
        previous_tick = tick

    buffer = io.BytesIO()
    midi_file.save(file=buffer)
    logger.debug(f"Wrote MIDI file with {len(events)} notes")
    return buffer.getvalue()
