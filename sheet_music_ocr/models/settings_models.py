"""Parameter models for pipeline configuration.

This module defines Pydantic models that encapsulate all configurable
parameters for each stage of the sheet music recognition pipeline.
These models provide validation, default values, and clear interfaces
for customizing the behavior of each processing step.
"""

from pydantic import BaseModel, Field

from sheet_music_ocr.models.core_models import Clef


class PreprocessingParams(BaseModel):
    """Configuration parameters for grayscale conversion and resizing.

    Attributes:
        target_width: Width in pixels every image is resized to before
            detection (default 1200). The aspect ratio is preserved.
    """

    target_width: int = Field(
        1200, ge=16, le=10000, description="Working image width in pixels"
    )


class BinarizationParams(BaseModel):
    """Configuration parameters for binarization.

    Attributes:
        threshold: Fixed threshold as a normalized intensity in [0, 1], or
            None to select one automatically with Otsu's method.
    """

    threshold: float | None = Field(
        None, ge=0.0, le=1.0, description="Fixed threshold, None for Otsu"
    )


class StaffDetectionParams(BaseModel):
    """Configuration parameters for staff line detection.

    Controls how rows of the horizontal projection become line candidates
    and how candidates are grouped into five-line staves.

    Attributes:
        peak_ratio: Fraction of the image width a row's ink count must
            exceed to be a peak (default 0.15).
        merge_distance: Peaks at most this many pixels apart are merged
            (default 3).
        spacing_tolerance: Maximum relative deviation of each line gap from
            the mean gap (default 0.3).
        min_spacing: Mean gap must be larger than this (default 5).
        max_spacing: Mean gap must be smaller than this (default 50).
    """

    peak_ratio: float = Field(
        0.15, gt=0.0, lt=1.0, description="Peak threshold as fraction of width"
    )
    merge_distance: int = Field(3, ge=0, description="Peak merge distance in px")
    spacing_tolerance: float = Field(
        0.3, gt=0.0, le=0.3, description="Allowed relative gap deviation"
    )
    min_spacing: float = Field(5.0, ge=0.0, description="Exclusive lower spacing bound")
    max_spacing: float = Field(50.0, gt=0.0, description="Exclusive upper spacing bound")


class NoteDetectionParams(BaseModel):
    """Configuration parameters for note head detection.

    All sizes are expressed relative to the staff spacing so the detector
    adapts to the printed size of the music.

    Attributes:
        margin_factor: Staff region padding above and below, in spacings.
        kernel_scale: Kernel side length, in spacings.
        radius_divisor: Kernel disk radius is the side length divided by this.
        response_ratio: Minimum response as a fraction of the kernel area.
        nms_scale: Half-width of the suppression window, in spacings.
    """

    margin_factor: float = Field(3.0, ge=0.0, description="Region padding in spacings")
    kernel_scale: float = Field(1.2, gt=0.0, description="Kernel side in spacings")
    radius_divisor: float = Field(2.5, ge=2.0, description="Side / disk radius")
    response_ratio: float = Field(
        0.3, gt=0.0, le=1.0, description="Response threshold / kernel area"
    )
    nms_scale: float = Field(0.8, gt=0.0, description="Suppression half-width in spacings")


class OcrParameters(BaseModel):
    """Complete configuration for the recognition pipeline.

    Attributes:
        preprocessing: Parameters for grayscale conversion and resizing.
        binarization: Parameters for thresholding.
        staff: Parameters for staff line detection.
        notes: Parameters for note head detection.
        clef: Clef used to turn staff positions into pitches.
        annotate: Whether to render a debug overlay into the result.
    """

    preprocessing: PreprocessingParams = Field(
        default_factory=PreprocessingParams, description="Preprocessing parameters"
    )
    binarization: BinarizationParams = Field(
        default_factory=BinarizationParams, description="Binarization parameters"
    )
    staff: StaffDetectionParams = Field(
        default_factory=StaffDetectionParams, description="Staff detection parameters"
    )
    notes: NoteDetectionParams = Field(
        default_factory=NoteDetectionParams, description="Note detection parameters"
    )
    clef: Clef = Field("treble", description="Clef for pitch mapping")
    annotate: bool = Field(False, description="Render a debug overlay")
