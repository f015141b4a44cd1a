"""
Visualization functions for the recognition pipeline.

This module draws recognition results for human review: staff boxes and
lines plus pitch-labelled, confidence-coloured note markers on the resized
image with a confidence legend, a side-by-side comparison with the input,
and a plot of the horizontal projection used for staff detection.
"""

from collections.abc import Sequence

import cv2
import numpy as np
from matplotlib.figure import Figure

from sheet_music_ocr.models import DetectedNote, DetectedStaff, OcrResult
from sheet_music_ocr.models.pipeline_models import StaffResult

# BGR colors
HIGH_CONFIDENCE_COLOR = (102, 207, 81)
MEDIUM_CONFIDENCE_COLOR = (59, 212, 255)
LOW_CONFIDENCE_COLOR = (107, 107, 255)
STAFF_COLORS = [
    (251, 218, 97),
    (107, 107, 255),
    (102, 207, 81),
    (59, 212, 255),
    (247, 94, 132),
]

MARKER_RADIUS = 15
LEGEND_ITEMS = [
    (HIGH_CONFIDENCE_COLOR, "High confidence (>=70%)"),
    (MEDIUM_CONFIDENCE_COLOR, "Medium confidence (40-70%)"),
    (LOW_CONFIDENCE_COLOR, "Low confidence (<40%)"),
]
TITLE_HEIGHT = 30


def confidence_color(confidence: float) -> tuple[int, int, int]:
    """Pick a BGR marker color for a confidence value.

    Returns:
        Green for confidence >= 0.7, yellow for >= 0.4, red otherwise.
    """
    if confidence >= 0.7:
        return HIGH_CONFIDENCE_COLOR
    if confidence >= 0.4:
        return MEDIUM_CONFIDENCE_COLOR
    return LOW_CONFIDENCE_COLOR


def _draw_dashed_rect(canvas, top_left, bottom_right, color, dash=5):
    x1, y1 = top_left
    x2, y2 = bottom_right
    for x in range(x1, x2, dash * 2):
        end = min(x + dash, x2)
        cv2.line(canvas, (x, y1), (end, y1), color, 2)
        cv2.line(canvas, (x, y2), (end, y2), color, 2)
    for y in range(y1, y2, dash * 2):
        end = min(y + dash, y2)
        cv2.line(canvas, (x1, y), (x1, end), color, 2)
        cv2.line(canvas, (x2, y), (x2, end), color, 2)


def draw_staff(canvas: np.ndarray, staff: DetectedStaff, staff_index: int) -> None:
    """Draw one staff's bounding box, lines and label onto `canvas`."""
    color = STAFF_COLORS[staff_index % len(STAFF_COLORS)]
    box = staff.bounding_box
    x1, y1 = int(round(box.x)), int(round(box.y))
    x2 = int(round(box.x + box.width)) - 1
    y2 = int(round(box.y + box.height))
    _draw_dashed_rect(canvas, (x1, y1), (x2, y2), color)

    overlay = canvas.copy()
    for y in staff.lines:
        cv2.line(overlay, (x1, int(round(y))), (x2, int(round(y))), color, 1)
    canvas[:] = cv2.addWeighted(overlay, 0.6, canvas, 0.4, 0)

    label = f"Staff {staff_index + 1} (spacing: {int(round(staff.spacing))}px)"
    cv2.putText(
        canvas,
        label,
        (x1 + 10, max(12, y1 - 10)),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.45,
        color,
        1,
        cv2.LINE_AA,
    )


def draw_note(canvas: np.ndarray, note: DetectedNote) -> None:
    """Draw a confidence-colored marker with pitch and confidence labels."""
    color = confidence_color(note.confidence)
    center = (int(round(note.position.x)), int(round(note.position.y)))

    overlay = canvas.copy()
    cv2.circle(overlay, center, MARKER_RADIUS, color, -1)
    canvas[:] = cv2.addWeighted(overlay, 0.3, canvas, 0.7, 0)
    cv2.circle(canvas, center, MARKER_RADIUS, color, 2)

    x, y = center
    (text_w, text_h), _ = cv2.getTextSize(note.name, cv2.FONT_HERSHEY_SIMPLEX, 0.4, 1)
    cv2.rectangle(canvas, (x + 20, y - text_h - 4), (x + 26 + text_w, y + 2), (0, 0, 0), -1)
    cv2.putText(
        canvas, note.name, (x + 23, y - 2), cv2.FONT_HERSHEY_SIMPLEX, 0.4, color, 1, cv2.LINE_AA
    )
    cv2.putText(
        canvas,
        f"{int(round(note.confidence * 100))}%",
        (x + 23, y + 12),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.3,
        (255, 255, 255),
        1,
        cv2.LINE_AA,
    )


def draw_legend(canvas: np.ndarray, x: int = 10, y: int = 10) -> None:
    """Draw the confidence color legend in a dark box at (`x`, `y`)."""
    overlay = canvas.copy()
    cv2.rectangle(overlay, (x, y), (x + 220, y + 90), (0, 0, 0), -1)
    canvas[:] = cv2.addWeighted(overlay, 0.8, canvas, 0.2, 0)

    white = (255, 255, 255)
    cv2.putText(
        canvas, "Confidence Legend", (x + 10, y + 20),
        cv2.FONT_HERSHEY_SIMPLEX, 0.45, white, 1, cv2.LINE_AA,
    )
    for index, (color, label) in enumerate(LEGEND_ITEMS):
        item_y = y + 40 + index * 20
        cv2.rectangle(canvas, (x + 10, item_y - 10), (x + 25, item_y + 5), color, -1)
        cv2.putText(
            canvas, label, (x + 32, item_y + 2),
            cv2.FONT_HERSHEY_SIMPLEX, 0.38, white, 1, cv2.LINE_AA,
        )


def annotate_image(
    image: np.ndarray | None,
    staves: Sequence[DetectedStaff],
    notes: Sequence[DetectedNote],
    scale: float = 1.0,
    legend: bool = True,
) -> np.ndarray | None:
    """Overlay detected staves and notes on a copy of the working image.

    Args:
        image: Resized BGR image the detections were made on, or None.
        staves: Detected staves in source-image coordinates.
        notes: Detected notes in source-image coordinates.
        scale: Working width / source width, used to map the detections
            back onto `image`.
        legend: Draw the confidence legend in the top-left corner.

    Returns:
        RGB image with the overlay, or None if `image` is None.
    """
    if image is None:
        return None

    canvas = image.copy()
    for index, staff in enumerate(staves):
        draw_staff(canvas, staff.scaled(scale), index)
    for note in notes:
        draw_note(canvas, note.scaled(scale))
    if legend:
        draw_legend(canvas)

    # Convert BGR→RGB for display
    return cv2.cvtColor(canvas, cv2.COLOR_BGR2RGB)


def annotate_result(image: np.ndarray | None, result: OcrResult) -> np.ndarray | None:
    """Overlay an OcrResult on the resized image it was computed from."""
    return annotate_image(
        image, result.detected_staffs, result.detected_notes, result.scale
    )


def _to_rgb(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    return image


def create_comparison_image(original: np.ndarray, annotated: np.ndarray) -> np.ndarray:
    """Stack the input image above its annotated version on a white sheet.

    Args:
        original: Input image, RGB or grayscale.
        annotated: Overlay from :func:`annotate_image` (RGB).

    Returns:
        RGB image with a titled band above each of the two images.
    """
    original = _to_rgb(original)
    annotated = _to_rgb(annotated)
    width = max(original.shape[1], annotated.shape[1])
    height = original.shape[0] + annotated.shape[0] + 2 * TITLE_HEIGHT
    sheet = np.full((height, width, 3), 255, dtype=np.uint8)

    top = 0
    for title, image in (("Original Image", original), ("Detected Elements", annotated)):
        cv2.putText(
            sheet, title, (10, top + 20),
            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 2, cv2.LINE_AA,
        )
        top += TITLE_HEIGHT
        sheet[top : top + image.shape[0], : image.shape[1]] = image
        top += image.shape[0]
    return sheet


def create_binary_visualization(binary: np.ndarray | None) -> np.ndarray | None:
    """Convert a 0/1 binary buffer to an RGB image for display.

    Args:
        binary: 2D array holding 0 for ink and 1 for paper, or None.

    Returns:
        3-channel RGB image with black ink on white, or None if input is None.
    """
    if binary is None:
        return None
    gray = (binary > 0).astype(np.uint8) * 255
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)


def create_projection_visualization(
    staff_result: StaffResult | None,
    *,
    width_px: int = 1200,
    height_px: int = 400,
    dpi: int = 100,
) -> Figure | None:
    """Plot the horizontal projection with its peak threshold and peaks.

    Rows run along the x-axis so the plot reads top of page to bottom.
    Merged peaks are marked and the rows of accepted staves are shaded.

    Args:
        staff_result: Staff detection result, or None.
        width_px: Figure width in pixels (default 1200).
        height_px: Figure height in pixels (default 400).
        dpi: Raster resolution (default 100).

    Returns:
        Matplotlib Figure, or None if there is no projection to plot.
    """
    if staff_result is None or staff_result.projection.size == 0:
        return None

    projection = staff_result.projection
    fig = Figure(figsize=(width_px / dpi, height_px / dpi), dpi=dpi)
    ax = fig.add_subplot(1, 1, 1)

    rows = np.arange(projection.size)
    ax.plot(rows, projection, color="black", linewidth=0.8, label="ink per row")
    ax.axhline(
        staff_result.peak_threshold, color="red", linestyle="--", label="peak threshold"
    )

    if staff_result.peaks:
        peaks = np.asarray(staff_result.peaks)
        ax.plot(peaks, projection[peaks], "o", color="tab:blue", markersize=3, label="peaks")

    for staff in staff_result.staves:
        ax.axvspan(staff.top, staff.bottom, color="tab:green", alpha=0.2)

    ax.set_xlim(0, projection.size - 1)
    ax.set_xlabel("Row (px)", fontsize=10)
    ax.set_ylabel("Ink pixels", fontsize=10)
    ax.legend(loc="upper right", fontsize=8)
    fig.tight_layout()
    return fig
