"""Note head detection using matched-filter convolution.

A filled note head is roughly a filled circle whose diameter is the staff
spacing. Correlating the staff region with a disk of that size gives a
response surface that peaks on note heads; local maxima of that surface
above a threshold become detections.

Local maxima are resolved in row-major order (ascending y, then x). When
two equal maxima lie within each other's suppression window, the one found
first in that order is kept.
"""

import logging

import cv2
import numpy as np

from sheet_music_ocr.binarization import INK
from sheet_music_ocr.models import Clef, DetectedNote, DetectedStaff, Position
from sheet_music_ocr.models.pipeline_models import NoteResult
from sheet_music_ocr.pitch import map_pitch
from sheet_music_ocr.staff import round_half_up

logger = logging.getLogger(__name__)


def crop_staff_region(
    binary: np.ndarray, staff: DetectedStaff, margin_factor: float = 3.0
) -> tuple[np.ndarray, int]:
    """Cut the rows around a staff out of a binary image.

    Args:
        binary: 2D uint8 array holding 0 for ink and 1 for paper.
        staff: Staff whose region to extract.
        margin_factor: Padding above and below the staff, in spacings.

    Returns:
        Tuple of (region copy, first row of the region in `binary`).
    """
    height = binary.shape[0]
    margin = staff.spacing * margin_factor
    box = staff.bounding_box
    start_y = max(0, round_half_up(box.y - margin))
    end_y = min(height, round_half_up(box.y + box.height + margin))
    return binary[start_y:end_y].copy(), start_y


def create_circular_kernel(size: int, radius_divisor: float = 2.5) -> np.ndarray:
    """Create a filled disk kernel.

    Args:
        size: Side length of the square kernel.
        radius_divisor: Disk radius is `size / radius_divisor`.

    Returns:
        `size`×`size` float64 array with 1 inside the disk, measured from the
        kernel's centre `(size - 1) / 2`, and 0 outside.
    """
    center = (size - 1) / 2
    radius = size / radius_divisor
    ys, xs = np.ogrid[:size, :size]
    distance = np.sqrt((ys - center) ** 2 + (xs - center) ** 2)
    return (distance <= radius).astype(np.float64)


def convolve2d(image: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Correlate an image with a kernel, same-size output, zero padding.

    The kernel's anchor is `((kh - 1) // 2, (kw - 1) // 2)`; pixels outside
    the image count as 0. For the symmetric disk kernel correlation and
    convolution coincide. The sum is accumulated tap by tap over the
    non-zero kernel weights, so responses are exact for 0/1 inputs.

    Args:
        image: 2D input array.
        kernel: 2D weights.

    Returns:
        float64 array with the same shape as `image`.
    """
    kh, kw = kernel.shape
    top, left = (kh - 1) // 2, (kw - 1) // 2
    padded = np.pad(
        image.astype(np.float64),
        ((top, kh - 1 - top), (left, kw - 1 - left)),
        mode="constant",
        constant_values=0.0,
    )
    height, width = image.shape
    response = np.zeros((height, width), dtype=np.float64)
    for dy, dx in zip(*np.nonzero(kernel)):
        response += kernel[dy, dx] * padded[dy : dy + height, dx : dx + width]
    return response


def find_local_maxima(
    response: np.ndarray, threshold: float, half_width: int
) -> list[tuple[int, int]]:
    """Non-maximum suppression over a square window.

    A location is kept when its response exceeds `threshold`, no location
    within `half_width` (Chebyshev distance) has a larger response, and no
    equal maximum was already kept within that distance in row-major order.

    Args:
        response: 2D response surface.
        threshold: Minimum response (exclusive).
        half_width: Half the side of the suppression window.

    Returns:
        (y, x) coordinates of the kept maxima in row-major order.
    """
    side = 2 * half_width + 1
    window_max = cv2.dilate(
        response.astype(np.float64), np.ones((side, side), dtype=np.uint8)
    )
    candidates = (response > threshold) & (response >= window_max)

    accepted: list[tuple[int, int]] = []
    for y, x in zip(*np.nonzero(candidates)):
        if any(
            abs(y - ay) <= half_width and abs(x - ax) <= half_width
            for ay, ax in accepted
        ):
            continue
        accepted.append((int(y), int(x)))
    return accepted


def detect_note_heads(
    binary: np.ndarray,
    staff: DetectedStaff,
    clef: Clef = "treble",
    staff_index: int = 0,
    margin_factor: float = 3.0,
    kernel_scale: float = 1.2,
    radius_divisor: float = 2.5,
    response_ratio: float = 0.3,
    nms_scale: float = 0.8,
) -> NoteResult:
    """Detect note heads on one staff.

    Args:
        binary: 2D uint8 array holding 0 for ink and 1 for paper.
        staff: Staff to search.
        clef: Clef used to name the pitches.
        staff_index: Index recorded on every note.
        margin_factor: Region padding above and below, in spacings.
        kernel_scale: Kernel side length, in spacings.
        radius_divisor: Kernel side / disk radius.
        response_ratio: Minimum response as a fraction of the kernel area.
        nms_scale: Suppression half-width, in spacings.

    Returns:
        NoteResult with notes ordered left to right. Confidence is the
        response divided by the kernel area, capped at 1.
    """
    region, start_y = crop_staff_region(binary, staff, margin_factor)
    if region.size == 0:
        return NoteResult()

    # ink becomes signal
    signal = (region == INK).astype(np.float64)
    del region

    kernel_size = max(1, round_half_up(staff.spacing * kernel_scale))
    kernel = create_circular_kernel(kernel_size, radius_divisor)
    kernel_area = float(kernel.sum())

    response = convolve2d(signal, kernel)
    del signal

    threshold = kernel_area * response_ratio
    half_width = max(1, round_half_up(staff.spacing * nms_scale))
    max_response = float(response.max())
    logger.debug(
        f"Max response {max_response:.1f}, threshold {threshold:.1f}, "
        f"kernel size {kernel_size}"
    )

    notes: list[DetectedNote] = []
    for y, x in find_local_maxima(response, threshold, half_width):
        value = float(response[y, x])
        absolute_y = y + start_y
        pitch, octave = map_pitch(absolute_y, staff, clef)
        notes.append(
            DetectedNote(
                pitch=pitch,
                octave=octave,
                position=Position(x=float(x), y=float(absolute_y)),
                confidence=min(value / kernel_area, 1.0),
                staff_index=staff_index,
            )
        )

    notes.sort(key=lambda n: n.position.x)
    logger.debug(f"Detected {len(notes)} notes after non-maximum suppression")
    return NoteResult(
        notes=notes, max_response=max_response, response_threshold=threshold
    )
