"""Core domain models for sheet music recognition."""

from typing import Literal

import numpy as np
from pydantic import BaseModel, Field, model_validator

Clef = Literal["treble", "bass"]
PitchName = Literal["A", "B", "C", "D", "E", "F", "G"]

LINES_PER_STAFF = 5
MAX_SPACING_DEVIATION = 0.3


class Position(BaseModel):
    """A point in image pixel coordinates, (0,0) at the top-left."""

    x: float = Field(..., ge=0, description="Horizontal position in pixels")
    y: float = Field(..., ge=0, description="Vertical position in pixels")


class BoundingBox(BaseModel):
    """Axis-aligned rectangle in image pixel coordinates.

    Attributes:
        x: Left edge position in pixels.
        y: Top edge position in pixels.
        width: Width in pixels.
        height: Height in pixels.
    """

    x: float = Field(..., ge=0, description="Left edge position in pixels")
    y: float = Field(..., ge=0, description="Top edge position in pixels")
    width: float = Field(..., ge=0, description="Width in pixels")
    height: float = Field(..., ge=0, description="Height in pixels")


class DetectedStaff(BaseModel):
    """A set of five equally spaced horizontal staff lines.

    The line coordinates are sorted top to bottom, so ``lines[0]`` is the
    top line of the staff and ``lines[-1]`` the bottom line. Construction
    fails unless the lines are strictly increasing and every gap between
    neighbouring lines is within 30% of ``spacing``.

    Attributes:
        lines: Y-coordinates of the five staff lines, top to bottom.
        spacing: Average distance between neighbouring lines.
        bounding_box: Region covered by the staff.
    """

    lines: list[float] = Field(
        ...,
        min_length=LINES_PER_STAFF,
        max_length=LINES_PER_STAFF,
        description="Y-coordinates of the staff lines, top to bottom",
    )
    spacing: float = Field(..., gt=0, description="Average inter-line distance")
    bounding_box: BoundingBox = Field(..., description="Region covered by the staff")

    @model_validator(mode="after")
    def check_line_geometry(self):
        gaps = np.diff(self.lines)
        if np.any(gaps <= 0):
            raise ValueError("staff lines must be strictly increasing in y")
        if np.any(np.abs(gaps - self.spacing) >= MAX_SPACING_DEVIATION * self.spacing):
            raise ValueError("staff line gaps must lie within 30% of the spacing")
        return self

    @property
    def top(self) -> float:
        """Y-coordinate of the top staff line."""
        return self.lines[0]

    @property
    def bottom(self) -> float:
        """Y-coordinate of the bottom staff line."""
        return self.lines[-1]

    @property
    def spacing_variance(self) -> float:
        """Population variance of the gaps between neighbouring lines."""
        return float(np.var(np.diff(self.lines)))

    def scaled(self, factor: float) -> "DetectedStaff":
        """Return a copy with every coordinate multiplied by ``factor``."""
        box = self.bounding_box
        return self.model_copy(
            update={
                "lines": [y * factor for y in self.lines],
                "spacing": self.spacing * factor,
                "bounding_box": BoundingBox(
                    x=box.x * factor,
                    y=box.y * factor,
                    width=box.width * factor,
                    height=box.height * factor,
                ),
            }
        )


class DetectedNote(BaseModel):
    """A note head recognised on a staff.

    Attributes:
        pitch: Pitch letter (A-G).
        octave: Scientific pitch octave number (middle C is C4).
        position: Centre of the detection in image pixels.
        confidence: Detector confidence in [0, 1].
        staff_index: Index of the staff the note was found on.
        duration: Note value; raster input carries no rhythm, so this is
            always the default.
    """

    pitch: PitchName = Field(..., description="Pitch letter")
    octave: int = Field(..., description="Octave number")
    position: Position = Field(..., description="Detection centre in pixels")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Detector confidence")
    staff_index: int = Field(0, ge=0, description="Index of the owning staff")
    duration: str = Field("quarter", description="Note value")

    class Config:
        frozen = True

    @property
    def name(self) -> str:
        """Pitch with octave, e.g. ``"B4"``."""
        return f"{self.pitch}{self.octave}"

    def scaled(self, factor: float) -> "DetectedNote":
        """Return a copy with the position multiplied by ``factor``."""
        return self.model_copy(
            update={
                "position": Position(
                    x=self.position.x * factor, y=self.position.y * factor
                )
            }
        )


class OcrResult(BaseModel):
    """Everything recognised in one image.

    Attributes:
        detected_staffs: Staves found in the image, top to bottom.
        detected_notes: Note heads found on the first staff, left to right.
        confidence: Mean note confidence, 0.0 when no notes were found.
        clef: Clef used to map note positions to pitches.
        scale: Ratio of the working (resized) width to the source width.
        annotated_image: Optional RGB overlay of the detections on the
            resized image.
    """

    detected_staffs: list[DetectedStaff] = Field(
        default_factory=list, description="Detected staves, top to bottom"
    )
    detected_notes: list[DetectedNote] = Field(
        default_factory=list, description="Detected notes, left to right"
    )
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Overall confidence")
    clef: Clef | None = Field(None, description="Clef used for pitch mapping")
    scale: float = Field(1.0, gt=0, description="Working width / source width")
    annotated_image: np.ndarray | None = Field(
        None, description="RGB overlay of the detections"
    )

    class Config:
        arbitrary_types_allowed = True


class MidiEvent(BaseModel):
    """A single MIDI note event with timing information.

    Time is measured in MIDI ticks, which can be converted to actual time
    based on the tempo and ticks-per-beat settings of the MIDI file.

    Attributes:
        note: MIDI note number (0-127, where 60 is middle C).
        start_tick: Start time in MIDI ticks (non-negative).
        duration_tick: Duration in MIDI ticks (positive).
    """

    note: int = Field(..., ge=0, le=127, description="MIDI note number (0-127)")
    start_tick: int = Field(..., ge=0, description="Start time in MIDI ticks")
    duration_tick: int = Field(..., ge=1, description="Duration in MIDI ticks")
