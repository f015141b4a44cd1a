"""Models for representing pipeline processing stages.

This module contains Pydantic models that encapsulate the results of each
stage in the sheet music recognition pipeline. Each model represents the
output data from a specific processing step, enabling clean separation of
concerns and easy testing of individual pipeline components.
"""

import numpy as np
from pydantic import BaseModel, Field

from sheet_music_ocr.models.core_models import DetectedNote, DetectedStaff


class PreprocessResult(BaseModel):
    """Result of the grayscale/normalization stage.

    Attributes:
        gray: 2D float32 array with intensities in [0, 1], resized to the
            working width, or None if no image was processed.
        scale: Working width divided by the source width.
        source_shape: (height, width) of the decoded source image.
        resized: Resized BGR copy of the source, kept only when an overlay
            was requested.
    """

    gray: np.ndarray | None = Field(None, description="Normalized grayscale image")
    scale: float = Field(1.0, gt=0, description="Working width / source width")
    source_shape: tuple[int, int] = Field((0, 0), description="Source (height, width)")
    resized: np.ndarray | None = Field(None, description="Resized BGR image")

    class Config:
        arbitrary_types_allowed = True


class BinaryResult(BaseModel):
    """Result of the binarization stage.

    The binary buffer holds 0 for ink and 1 for paper.

    Attributes:
        binary: 2D uint8 array of the thresholded image, or None.
        threshold: Threshold used, as a normalized intensity in [0, 1].
    """

    binary: np.ndarray | None = Field(None, description="Two-level image")
    threshold: float = Field(0.0, ge=0.0, le=1.0, description="Applied threshold")

    class Config:
        arbitrary_types_allowed = True


class StaffResult(BaseModel):
    """Staff line detection results.

    Besides the staves, the intermediate signals are kept so they can be
    plotted for debugging.

    Attributes:
        staves: Detected staves, top to bottom.
        projection: Ink count per image row.
        peaks: Merged peak rows used to build the staves.
        peak_threshold: Minimum ink count a row needed to be a peak.
    """

    staves: list[DetectedStaff] = Field(
        default_factory=list, description="Detected staves"
    )
    projection: np.ndarray = Field(
        default_factory=lambda: np.array([]), description="Horizontal projection"
    )
    peaks: list[int] = Field(default_factory=list, description="Merged peak rows")
    peak_threshold: float = Field(0.0, description="Peak count threshold")

    class Config:
        arbitrary_types_allowed = True


class NoteResult(BaseModel):
    """Note head detection results for one staff.

    Attributes:
        notes: Detected notes, ordered left to right.
        max_response: Strongest convolution response seen in the staff region.
        response_threshold: Response a location had to exceed to be kept.
    """

    notes: list[DetectedNote] = Field(
        default_factory=list, description="Detected notes"
    )
    max_response: float = Field(0.0, description="Strongest response")
    response_threshold: float = Field(0.0, description="Response threshold")
