"""Image preprocessing functions for the recognition pipeline.

This module reduces a decoded image to a single normalized luminance
channel at a fixed working width. Detection thresholds elsewhere are tuned
for that width, so every image is rescaled to it regardless of its original
resolution.
"""

import logging

import cv2
import numpy as np

from sheet_music_ocr.models.pipeline_models import PreprocessResult

logger = logging.getLogger(__name__)


def composite_on_white(image: np.ndarray) -> np.ndarray:
    """Flatten a BGRA image onto a white background.

    Transparent regions of scanned or exported sheet music are treated as
    paper rather than ink.

    Args:
        image: BGRA image as an H×W×4 uint8 array.

    Returns:
        BGR image as an H×W×3 uint8 array.
    """
    bgr = image[..., :3].astype(np.float32)
    alpha = image[..., 3:4].astype(np.float32) / 255.0
    flat = bgr * alpha + 255.0 * (1.0 - alpha)
    return np.rint(flat).astype(np.uint8)


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Convert any supported buffer to a 3-channel BGR image."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image[..., 0], cv2.COLOR_GRAY2BGR)
    if channels == 4:
        return composite_on_white(image)
    return image


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert an image to a single luminance channel.

    Uses OpenCV's weighted luminance (0.299 R + 0.587 G + 0.114 B).

    Args:
        image: Grayscale, BGR or BGRA uint8 image.

    Returns:
        2D uint8 grayscale image.
    """
    if image.ndim == 2:
        return image
    if image.shape[2] == 1:
        return image[..., 0]
    return cv2.cvtColor(to_bgr(image), cv2.COLOR_BGR2GRAY)


def resize_to_width(image: np.ndarray, target_width: int) -> tuple[np.ndarray, float]:
    """Resize an image to a target width, preserving the aspect ratio.

    Args:
        image: Image to resize (2D or 3D).
        target_width: Desired width in pixels.

    Returns:
        Tuple of (resized image, scale) where scale is target / source width.
        The image is returned unchanged when it already has the target width.
    """
    height, width = image.shape[:2]
    scale = target_width / width
    if width == target_width:
        return image, 1.0

    new_height = max(1, int(np.floor(height * scale + 0.5)))
    resized = cv2.resize(
        image, (target_width, new_height), interpolation=cv2.INTER_LINEAR
    )
    return resized, scale


def normalize(gray: np.ndarray) -> np.ndarray:
    """Rescale 8-bit intensities to float32 values in [0, 1]."""
    return gray.astype(np.float32) / 255.0


def preprocess_image(
    image: np.ndarray, target_width: int = 1200, keep_color: bool = False
) -> PreprocessResult:
    """Turn a decoded image into a normalized grayscale working image.

    Args:
        image: Decoded uint8 image (grayscale, BGR or BGRA).
        target_width: Working width in pixels (default 1200).
        keep_color: Also return a resized BGR copy for overlays.

    Returns:
        PreprocessResult holding the float32 grayscale buffer, the scale
        between working and source width, and the optional color copy.
    """
    source_height, source_width = image.shape[:2]

    gray = to_grayscale(image)
    resized_gray, scale = resize_to_width(gray, target_width)
    normalized = normalize(resized_gray)
    logger.debug(
        f"Preprocessed {source_height}x{source_width} image to "
        f"{normalized.shape[0]}x{normalized.shape[1]} (scale {scale:.3f})"
    )

    resized = None
    if keep_color:
        resized, _ = resize_to_width(to_bgr(image), target_width)
        resized = resized.copy()

    return PreprocessResult(
        gray=normalized,
        scale=scale,
        source_shape=(source_height, source_width),
        resized=resized,
    )
