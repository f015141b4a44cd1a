"""Domain models for the sheet music recognition library.

This module provides a centralized location for all data models used throughout
the recognition pipeline. It includes:

- Core domain models (DetectedStaff, DetectedNote, OcrResult)
- Pipeline processing stage results (BinaryResult, StaffResult, etc.)
- Configuration parameters for each processing stage

All models are built using Pydantic for data validation and serialization,
ensuring type safety and clear interfaces between pipeline components.
"""

# Re-export core models
from sheet_music_ocr.models.core_models import (
    Clef,
    PitchName,
    Position,
    BoundingBox,
    DetectedStaff,
    DetectedNote,
    OcrResult,
    MidiEvent,
)

# Re-export pipeline models
from sheet_music_ocr.models.pipeline_models import (
    PreprocessResult,
    BinaryResult,
    StaffResult,
    NoteResult,
)

# Re-export setting models
from sheet_music_ocr.models.settings_models import (
    PreprocessingParams,
    BinarizationParams,
    StaffDetectionParams,
    NoteDetectionParams,
    OcrParameters,
)
