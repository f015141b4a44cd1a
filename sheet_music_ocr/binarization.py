"""Global thresholding of normalized grayscale images.

Intensities are compared on a 256-level scale: a pixel's level is
``rint(value * 255)`` and it is classified as paper when its level is
strictly greater than the threshold's level, otherwise as ink. Thresholds
are exchanged as normalized intensities in [0, 1].
"""

import logging

import numpy as np

from sheet_music_ocr.exceptions import InvalidImageError

logger = logging.getLogger(__name__)

LEVELS = 256
INK = 0
PAPER = 1


def _check_buffer(gray) -> np.ndarray:
    gray = np.asarray(gray)
    if gray.ndim == 3 and gray.shape[2] == 1:
        gray = gray[..., 0]
    if gray.ndim != 2 or gray.size == 0:
        raise InvalidImageError(
            f"Binarization needs a non-empty single-channel buffer, got {gray.shape}"
        )
    if not np.issubdtype(gray.dtype, np.number) and gray.dtype != np.bool_:
        raise InvalidImageError(f"Unsupported pixel type {gray.dtype}")
    return gray


def quantize(gray: np.ndarray) -> np.ndarray:
    """Map normalized intensities to integer levels 0..255."""
    clipped = np.clip(gray.astype(np.float64), 0.0, 1.0)
    return np.rint(clipped * (LEVELS - 1)).astype(np.int64)


def threshold_level(threshold: float) -> int:
    """Map a normalized threshold to its integer level."""
    return int(np.rint(np.clip(threshold, 0.0, 1.0) * (LEVELS - 1)))


def otsu_threshold(gray: np.ndarray) -> float:
    """Select a global threshold with Otsu's method.

    Builds a 256-bin histogram and picks the level ``t`` that maximises the
    between-class variance ``wB * wF * (mB - mF) ** 2``, where the background
    class holds levels ``<= t``. When several levels reach the maximum the
    lowest one wins. An image with a single intensity has no valid split and
    yields 0.

    Args:
        gray: 2D array of normalized intensities in [0, 1].

    Returns:
        The selected threshold as a normalized intensity ``t / 255``.

    Raises:
        InvalidImageError: If the buffer is empty or not single-channel.
    """
    gray = _check_buffer(gray)
    levels = quantize(gray)
    histogram = np.bincount(levels.ravel(), minlength=LEVELS).astype(np.float64)
    total = histogram.sum()

    intensities = np.arange(LEVELS, dtype=np.float64)
    count_b = np.cumsum(histogram)
    sum_b = np.cumsum(histogram * intensities)
    count_f = total - count_b
    sum_f = sum_b[-1] - sum_b

    valid = (count_b > 0) & (count_f > 0)
    if not np.any(valid):
        logger.debug("Uniform image, Otsu threshold defaults to 0")
        return 0.0

    variance = np.zeros(LEVELS, dtype=np.float64)
    mean_b = sum_b[valid] / count_b[valid]
    mean_f = sum_f[valid] / count_f[valid]
    w_b = count_b[valid] / total
    w_f = count_f[valid] / total
    variance[valid] = w_b * w_f * (mean_b - mean_f) ** 2

    # argmax returns the first maximum, so ties go to the lowest level
    best = int(np.argmax(variance))
    return best / (LEVELS - 1)


def apply_threshold(gray: np.ndarray, threshold: float) -> np.ndarray:
    """Split an image into ink (0) and paper (1) at a fixed threshold.

    Args:
        gray: 2D array of normalized intensities in [0, 1].
        threshold: Normalized threshold; levels above it are paper.

    Returns:
        2D uint8 array holding 0 for ink and 1 for paper.
    """
    gray = _check_buffer(gray)
    paper = quantize(gray) > threshold_level(threshold)
    return paper.astype(np.uint8)


def binarize(gray: np.ndarray, threshold: float | None = None) -> tuple[np.ndarray, float]:
    """Binarize an image with a fixed or automatically selected threshold.

    Args:
        gray: 2D array of normalized intensities in [0, 1].
        threshold: Fixed threshold, or None to use Otsu's method.

    Returns:
        Tuple of (binary image, threshold used).

    Raises:
        InvalidImageError: If the buffer is empty or not single-channel.
    """
    gray = _check_buffer(gray)
    if threshold is None:
        threshold = otsu_threshold(gray)
        logger.debug(f"Otsu threshold: {threshold:.4f}")
    binary = apply_threshold(gray, threshold)
    return binary, float(threshold)
