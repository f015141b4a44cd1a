import numpy as np
import pytest

from sheet_music_ocr.binarization import (
    INK,
    PAPER,
    apply_threshold,
    binarize,
    otsu_threshold,
    quantize,
)
from sheet_music_ocr.exceptions import InvalidImageError


def two_level_image(low, high):
    # Left half at `low`, right half at `high`, both given as 8-bit levels
    image = np.empty((10, 20), dtype=np.float64)
    image[:, :10] = low / 255.0
    image[:, 10:] = high / 255.0
    return image


def test_quantize_levels():
    assert quantize(np.array([[0.0, 1.0, 0.5, 2.0]])).tolist() == [[0, 255, 128, 255]]


def test_otsu_picks_lowest_maximizing_level():
    # Every level between the two classes splits them equally well
    assert otsu_threshold(two_level_image(40, 100)) == pytest.approx(40 / 255)


def test_otsu_invariant_to_intensity_scaling():
    image = two_level_image(40, 100)
    scaled = image * 2.0

    assert otsu_threshold(scaled) == pytest.approx(80 / 255)
    binary, _ = binarize(image)
    scaled_binary, _ = binarize(scaled)
    assert np.array_equal(binary, scaled_binary)


def test_otsu_separates_dark_from_light():
    rng = np.random.default_rng(0)
    dark = rng.random((40, 40)) < 0.2
    image = np.where(dark, 0.1, 0.9) + rng.normal(0.0, 0.02, dark.shape)
    t = otsu_threshold(image)
    assert 0.1 < t < 0.9
    binary, _ = binarize(image)
    assert np.all(binary[dark] == INK)
    assert np.all(binary[~dark] == PAPER)


@pytest.mark.parametrize("value", [0.0, 0.5, 1.0])
def test_uniform_image_threshold_is_zero(value):
    image = np.full((8, 8), value)
    assert otsu_threshold(image) == 0.0
    binary, threshold = binarize(image)
    assert threshold == 0.0
    expected = INK if value == 0.0 else PAPER
    assert np.all(binary == expected)


def test_fixed_threshold_override():
    image = np.array([[0.2, 0.8], [0.5, 0.51]])
    binary, threshold = binarize(image, threshold=0.5)
    assert threshold == 0.5
    assert binary.tolist() == [[INK, PAPER], [INK, PAPER]]


def test_binarize_is_idempotent():
    rng = np.random.default_rng(1)
    image = rng.random((30, 30))
    binary, threshold = binarize(image)
    again = apply_threshold(binary, threshold)
    assert np.array_equal(binary, again)


def test_binarize_output_dtype():
    binary, _ = binarize(two_level_image(0, 255))
    assert binary.dtype == np.uint8
    assert set(np.unique(binary)) == {INK, PAPER}


def test_binarize_accepts_single_channel_3d():
    binary, _ = binarize(two_level_image(0, 255)[..., None])
    assert binary.shape == (10, 20)


@pytest.mark.parametrize(
    "image",
    [np.zeros((0, 0)), np.zeros((4, 4, 3)), np.zeros(5), np.array([["a"]])],
)
def test_invalid_buffers_raise(image):
    with pytest.raises(InvalidImageError):
        otsu_threshold(image)
    with pytest.raises(InvalidImageError):
        binarize(image, threshold=0.5)
