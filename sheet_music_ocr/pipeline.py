"""
Pipeline processing functions for sheet music recognition.

This module chains the recognition stages (loading, preprocessing,
binarization, staff detection, note detection) and assembles the final
OcrResult. Each stage function takes the previous stage's result model and
returns its own, so stages can also be run and tested individually.
"""

import logging
from pathlib import Path

import numpy as np

from sheet_music_ocr.backend import NumericBackend, get_default_backend
from sheet_music_ocr.binarization import binarize
from sheet_music_ocr.exceptions import PipelineError
from sheet_music_ocr.image_loading import load_image
from sheet_music_ocr.image_processing import preprocess_image
from sheet_music_ocr.note_detection import detect_note_heads
from sheet_music_ocr.staff import detect_staves
from sheet_music_ocr.visualization import annotate_image

from sheet_music_ocr.models import Clef, DetectedNote, DetectedStaff, OcrResult
from sheet_music_ocr.models.pipeline_models import (
    BinaryResult,
    StaffResult,
    NoteResult,
)
from sheet_music_ocr.models.settings_models import OcrParameters, BinarizationParams


logger = logging.getLogger(__name__)


def process_image(image, params, keep_color=False, backend=None):
    """Convert a decoded image to a normalized grayscale working image.

    Args:
        image: Decoded uint8 image
        params: Preprocessing parameters
        keep_color: Keep a resized color copy for overlays
        backend: Numeric backend used to materialize the output

    Returns:
        PreprocessResult containing the working image and scale
    """
    backend = backend or get_default_backend()
    result = preprocess_image(image, params.target_width, keep_color=keep_color)
    return result.model_copy(update={"gray": backend.materialize(result.gray)})


def process_binary_image(preprocess_result, params, backend=None):
    """Convert the working image to a two-level image.

    Args:
        preprocess_result: Normalized grayscale image
        params: Binarization parameters

    Returns:
        BinaryResult containing the binary image and the threshold used
    """
    if preprocess_result.gray is None:
        logger.warning("No image provided for binarization")
        return BinaryResult()

    backend = backend or get_default_backend()
    binary, threshold = binarize(preprocess_result.gray, params.threshold)
    return BinaryResult(binary=backend.materialize(binary), threshold=threshold)


def process_staff_detection(binary_result, params):
    """Find five-line staves in the binary image.

    Args:
        binary_result: Binary image from the previous stage
        params: Staff detection parameters

    Returns:
        StaffResult with the staves, projection and peaks
    """
    binary = binary_result.binary
    if binary is None:
        logger.warning("No binary image provided for staff detection")
        return StaffResult()

    staves, projection, peaks = detect_staves(
        binary,
        peak_ratio=params.peak_ratio,
        merge_distance=params.merge_distance,
        spacing_tolerance=params.spacing_tolerance,
        min_spacing=params.min_spacing,
        max_spacing=params.max_spacing,
    )
    return StaffResult(
        staves=staves,
        projection=projection,
        peaks=peaks,
        peak_threshold=binary.shape[1] * params.peak_ratio,
    )


def process_note_detection(binary_result, staff_result, params, clef="treble"):
    """Detect note heads on the first staff.

    Args:
        binary_result: Binary image
        staff_result: Detected staves
        params: Note detection parameters
        clef: Clef used to name the pitches

    Returns:
        NoteResult with the notes of the first staff, left to right
    """
    if binary_result.binary is None or not staff_result.staves:
        return NoteResult()

    return detect_note_heads(
        binary_result.binary,
        staff_result.staves[0],
        clef=clef,
        staff_index=0,
        margin_factor=params.margin_factor,
        kernel_scale=params.kernel_scale,
        radius_divisor=params.radius_divisor,
        response_ratio=params.response_ratio,
        nms_scale=params.nms_scale,
    )


def assemble_result(
    staves: list[DetectedStaff],
    notes: list[DetectedNote],
    clef: Clef | None = "treble",
    scale: float = 1.0,
    annotated_image: np.ndarray | None = None,
) -> OcrResult:
    """Package staves and notes into an OcrResult.

    Overall confidence is the mean note confidence, or 0.0 without notes.
    """
    confidence = float(np.mean([n.confidence for n in notes])) if notes else 0.0
    return OcrResult(
        detected_staffs=staves,
        detected_notes=notes,
        confidence=min(confidence, 1.0),
        clef=clef,
        scale=scale,
        annotated_image=annotated_image,
    )


def _to_source_coordinates(staves, notes, scale):
    factor = 1.0 / scale
    if factor == 1.0:
        return list(staves), list(notes)
    return [s.scaled(factor) for s in staves], [n.scaled(factor) for n in notes]


def recognize_sheet_music(
    image: bytes | str | Path | np.ndarray,
    params: OcrParameters | None = None,
    *,
    threshold: float | None = None,
    clef: Clef | None = None,
    backend: NumericBackend | None = None,
) -> OcrResult:
    """Recognize the staves and note heads in an image of sheet music.

    Every image is resized to `params.preprocessing.target_width` (1200 px
    by default) before detection. Staff lines are found as rows whose ink
    count is strictly greater than both neighbouring rows, so a line must
    be a single row thick at that width. Lines that are two or more rows
    thick after resizing, such as thin lines in a narrow source that gets
    upscaled, produce no staves.

    Args:
        image: Encoded image bytes, file path, base64 data URL or decoded
            BGR(A)/grayscale array.
        params: Pipeline parameters; defaults are used when omitted.
        threshold: Fixed binarization threshold in [0, 1], overriding
            `params`. Otsu's method is used when neither sets one.
        clef: Clef hint overriding `params`; defaults to treble.
        backend: Numeric backend handle; the process-wide default when omitted.

    Returns:
        OcrResult with every coordinate in source-image pixels. Empty staff
        or note lists mean nothing recognizable was found.

    Raises:
        ImageLoadError: If the image cannot be decoded.
        InvalidImageError: If the decoded image has an unusable shape.
    """
    params = params or OcrParameters()
    if threshold is not None:
        params = params.model_copy(
            update={"binarization": BinarizationParams(threshold=threshold)}
        )
    if clef is not None:
        params = OcrParameters(**{**params.model_dump(), "clef": clef})

    backend = backend or get_default_backend()
    backend.ensure_initialized()

    try:
        with backend.scope() as buffers:
            raw = buffers.track(load_image(image))

            # Step 1: Grayscale, resize, normalize
            preprocessed = process_image(
                raw, params.preprocessing, keep_color=params.annotate, backend=backend
            )
            buffers.track(preprocessed.gray)
            buffers.track(preprocessed.resized)
            buffers.release(raw)
            del raw

            # Step 2: Binarization
            binary_result = process_binary_image(
                preprocessed, params.binarization, backend=backend
            )
            buffers.track(binary_result.binary)
            buffers.release(preprocessed.gray)
            preprocessed = preprocessed.model_copy(update={"gray": None})
            logger.debug(f"Binarized with threshold {binary_result.threshold:.4f}")

            # Step 3: Staff detection
            staff_result = process_staff_detection(binary_result, params.staff)
            if not staff_result.staves:
                logger.warning("No staff lines detected")

            # Step 4: Note detection on the first staff
            note_result = process_note_detection(
                binary_result, staff_result, params.notes, clef=params.clef
            )
            buffers.release(binary_result.binary)
            binary_result = binary_result.model_copy(update={"binary": None})
            if staff_result.staves and not note_result.notes:
                logger.warning("No notes detected")

            annotated = None
            if params.annotate:
                annotated = annotate_image(
                    preprocessed.resized, staff_result.staves, note_result.notes
                )
                buffers.release(preprocessed.resized)
                preprocessed = preprocessed.model_copy(update={"resized": None})

            staves, notes = _to_source_coordinates(
                staff_result.staves, note_result.notes, preprocessed.scale
            )
            result = assemble_result(
                staves,
                notes,
                clef=params.clef,
                scale=preprocessed.scale,
                annotated_image=annotated,
            )
    except PipelineError as e:
        logger.error(f"Sheet music recognition failed: {e}")
        raise

    logger.info(
        f"Recognized {len(result.detected_staffs)} staves and "
        f"{len(result.detected_notes)} notes (confidence {result.confidence:.2f})"
    )
    return result
