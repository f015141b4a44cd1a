import logging

import numpy as np

from sheet_music_ocr.binarization import INK
from sheet_music_ocr.models import BoundingBox, DetectedStaff
from sheet_music_ocr.models.core_models import LINES_PER_STAFF

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(np.floor(value + 0.5))


def horizontal_projection(binary: np.ndarray) -> np.ndarray:
    """Count the ink pixels of every row.

    Args:
        binary: 2D uint8 array holding 0 for ink and 1 for paper.

    Returns:
        1D int array of length `height` with the ink count per row.
    """
    return np.count_nonzero(binary == INK, axis=1)


def find_peaks(projection: np.ndarray, width: int, peak_ratio: float = 0.15) -> list[int]:
    """Find rows that look like staff lines.

    Args:
        projection: Ink count per row.
        width: Image width in pixels.
        peak_ratio: A peak's count must exceed `peak_ratio * width`.

    Returns:
        Row indices, ascending, whose count exceeds the threshold and is
        strictly greater than both neighbouring rows. The first and last
        rows are never peaks.
    """
    if projection.size < 3:
        return []
    threshold = width * peak_ratio
    center = projection[1:-1]
    is_peak = (
        (center > threshold)
        & (center > projection[:-2])
        & (center > projection[2:])
    )
    return [int(i) + 1 for i in np.flatnonzero(is_peak)]


def merge_peaks(peaks: list[int], max_distance: int = 3) -> list[int]:
    """Merge peaks that are very close together.

    Scans left to right; a peak within `max_distance` of the last merged
    peak replaces it with the rounded average of the two.

    Args:
        peaks: Ascending peak rows.
        max_distance: Largest gap, in pixels, that is merged.

    Returns:
        The merged peak rows, ascending.
    """
    if not peaks:
        return []
    merged = [peaks[0]]
    for peak in peaks[1:]:
        last = merged[-1]
        if peak - last <= max_distance:
            merged[-1] = round_half_up((last + peak) / 2)
        else:
            merged.append(peak)
    return merged


def spacing_variance(lines: list[float]) -> float:
    """Population variance of the gaps between consecutive lines."""
    return float(np.var(np.diff(lines)))


def _build_staff(group: list[int], spacing: float, image_width: int) -> DetectedStaff:
    lines = [float(y) for y in group]
    return DetectedStaff(
        lines=lines,
        spacing=spacing,
        bounding_box=BoundingBox(
            x=0.0,
            y=lines[0],
            width=float(image_width),
            height=lines[-1] - lines[0] + spacing,
        ),
    )


def find_candidate_staves(
    peaks: list[int],
    image_width: int,
    spacing_tolerance: float = 0.3,
    min_spacing: float = 5.0,
    max_spacing: float = 50.0,
) -> list[tuple[list[int], DetectedStaff]]:
    """Find every window of five consecutive peaks that could be a staff.

    A window qualifies when every gap is within `spacing_tolerance` of the
    mean gap and the mean gap lies strictly between `min_spacing` and
    `max_spacing`.

    Returns:
        List of (peak indices, staff) pairs in window order.
    """
    candidates: list[tuple[list[int], DetectedStaff]] = []
    for start in range(len(peaks) - LINES_PER_STAFF + 1):
        indices = list(range(start, start + LINES_PER_STAFF))
        group = [peaks[i] for i in indices]
        gaps = np.diff(group).astype(np.float64)
        spacing = float(gaps.mean())

        if not min_spacing < spacing < max_spacing:
            continue
        if np.any(np.abs(gaps - spacing) >= spacing_tolerance * spacing):
            continue

        candidates.append((indices, _build_staff(group, spacing, image_width)))
    return candidates


def group_peaks_into_staves(
    peaks: list[int],
    image_width: int,
    spacing_tolerance: float = 0.3,
    min_spacing: float = 5.0,
    max_spacing: float = 50.0,
) -> list[DetectedStaff]:
    """Group merged peaks into non-overlapping five-line staves.

    Candidates are ranked by the variance of their gaps (most regular
    first, window order for ties) and accepted greedily; a candidate that
    shares a peak with an accepted staff is skipped, so a stray line that
    fits several windows ends up in the most regular one.

    Returns:
        Accepted staves sorted top to bottom. Empty if fewer than five
        peaks are available.
    """
    if len(peaks) < LINES_PER_STAFF:
        return []

    candidates = find_candidate_staves(
        peaks, image_width, spacing_tolerance, min_spacing, max_spacing
    )
    logger.debug(f"Found {len(candidates)} candidate staves")
    ranked = sorted(candidates, key=lambda c: c[1].spacing_variance)

    used: set[int] = set()
    staves: list[DetectedStaff] = []
    for indices, staff in ranked:
        if used.intersection(indices):
            continue
        used.update(indices)
        staves.append(staff)
        logger.debug(f"Accepted staff at y={staff.top:.0f}, spacing={staff.spacing:.2f}")

    return sorted(staves, key=lambda s: s.top)


def detect_staves(
    binary: np.ndarray,
    peak_ratio: float = 0.15,
    merge_distance: int = 3,
    spacing_tolerance: float = 0.3,
    min_spacing: float = 5.0,
    max_spacing: float = 50.0,
) -> tuple[list[DetectedStaff], np.ndarray, list[int]]:
    """Detect five-line staves in a binary image.

    Args:
        binary: 2D uint8 array holding 0 for ink and 1 for paper.

    Returns:
        Tuple of (staves top to bottom, horizontal projection, merged peaks).
    """
    width = binary.shape[1]
    projection = horizontal_projection(binary)
    raw_peaks = find_peaks(projection, width, peak_ratio)
    peaks = merge_peaks(raw_peaks, merge_distance)
    logger.debug(f"Found {len(raw_peaks)} peaks, merged to {len(peaks)}")

    staves = group_peaks_into_staves(
        peaks, width, spacing_tolerance, min_spacing, max_spacing
    )
    return staves, projection, peaks
