import numpy as np
from matplotlib.figure import Figure

from sheet_music_ocr.models import DetectedNote, Position
from sheet_music_ocr.models.pipeline_models import StaffResult
from sheet_music_ocr.visualization import (
    HIGH_CONFIDENCE_COLOR,
    LOW_CONFIDENCE_COLOR,
    MEDIUM_CONFIDENCE_COLOR,
    annotate_image,
    TITLE_HEIGHT,
    annotate_result,
    confidence_color,
    create_binary_visualization,
    create_comparison_image,
    draw_legend,
    create_projection_visualization,
)
from sheet_music_ocr.pipeline import assemble_result


def test_confidence_color_bands():
    assert confidence_color(0.95) == HIGH_CONFIDENCE_COLOR
    assert confidence_color(0.7) == HIGH_CONFIDENCE_COLOR
    assert confidence_color(0.5) == MEDIUM_CONFIDENCE_COLOR
    assert confidence_color(0.4) == MEDIUM_CONFIDENCE_COLOR
    assert confidence_color(0.1) == LOW_CONFIDENCE_COLOR


def test_annotate_image_none():
    assert annotate_image(None, [], []) is None


def test_annotate_image_draws_on_copy(staff):
    image = np.full((300, 1200, 3), 255, dtype=np.uint8)
    note = DetectedNote(
        pitch="B", octave=4, position=Position(x=600, y=140), confidence=0.9
    )
    out = annotate_image(image, [staff], [note])
    assert out.shape == (300, 1200, 3)
    assert out.dtype == np.uint8
    assert not np.array_equal(out, image)
    assert np.all(image == 255)


def test_annotate_result_maps_back_to_working_size(staff):
    # result in source pixels at twice the working size
    result = assemble_result([staff.scaled(2.0)], [], scale=0.5)
    image = np.full((300, 1200, 3), 255, dtype=np.uint8)
    out = annotate_result(image, result)
    assert out.shape == image.shape
    # the top staff line lands on row 100 of the working image
    assert np.any(out[100] != 255)


def test_create_binary_visualization():
    assert create_binary_visualization(None) is None
    binary = np.array([[0, 1], [1, 0]], dtype=np.uint8)
    out = create_binary_visualization(binary)
    assert out.shape == (2, 2, 3)
    assert out[0, 0].tolist() == [0, 0, 0]
    assert out[0, 1].tolist() == [255, 255, 255]


def test_projection_visualization_empty():
    assert create_projection_visualization(None) is None
    assert create_projection_visualization(StaffResult()) is None


def test_projection_visualization(staff):
    projection = np.zeros(300, dtype=int)
    projection[[100, 120, 140, 160, 180]] = 1200
    staff_result = StaffResult(
        staves=[staff],
        projection=projection,
        peaks=[100, 120, 140, 160, 180],
        peak_threshold=180.0,
    )
    fig = create_projection_visualization(staff_result)
    assert isinstance(fig, Figure)
    assert len(fig.axes) == 1


def test_annotate_image_draws_legend():
    image = np.full((200, 400, 3), 255, dtype=np.uint8)
    with_legend = annotate_image(image, [], [])
    without_legend = annotate_image(image, [], [], legend=False)

    assert np.all(without_legend == 255)
    # dark legend box in the top-left corner
    assert with_legend[95, 200].tolist() == [51, 51, 51]
    assert np.all(with_legend[150:, 250:] == 255)


def test_draw_legend_uses_confidence_colors():
    canvas = np.full((120, 260, 3), 255, dtype=np.uint8)
    draw_legend(canvas)
    # color swatches sit at x=20..35, one per confidence band
    assert canvas[45, 27].tolist() == list(HIGH_CONFIDENCE_COLOR)
    assert canvas[65, 27].tolist() == list(MEDIUM_CONFIDENCE_COLOR)
    assert canvas[85, 27].tolist() == list(LOW_CONFIDENCE_COLOR)


def test_create_comparison_image():
    original = np.zeros((50, 80), dtype=np.uint8)
    annotated = np.full((60, 100, 3), 7, dtype=np.uint8)
    sheet = create_comparison_image(original, annotated)

    assert sheet.shape == (50 + 60 + 2 * TITLE_HEIGHT, 100, 3)
    assert np.all(sheet[TITLE_HEIGHT : TITLE_HEIGHT + 50, :80] == 0)
    # narrower input is padded with white
    assert np.all(sheet[TITLE_HEIGHT : TITLE_HEIGHT + 50, 80:] == 255)
    assert np.all(sheet[2 * TITLE_HEIGHT + 50 :] == 7)
