"""Image loading for the recognition pipeline.

Turns whatever the caller hands over (encoded bytes, a file path, a base64
data URL or an already decoded array) into an 8-bit OpenCV pixel buffer and
checks that the buffer has a usable shape.
"""

import base64
import binascii
import logging
from pathlib import Path

import cv2
import numpy as np

from sheet_music_ocr.exceptions import ImageLoadError, InvalidImageError

logger = logging.getLogger(__name__)

VALID_CHANNEL_COUNTS = (1, 3, 4)


def decode_data_url(data_url: str) -> bytes:
    """Extract the payload of a ``data:image/...;base64,`` URL.

    Args:
        data_url: URL as produced by a browser ``FileReader``.

    Returns:
        The decoded image file bytes.

    Raises:
        ImageLoadError: If the URL is not base64 encoded or is malformed.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.endswith(";base64"):
        raise ImageLoadError("Only base64 encoded data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Invalid base64 payload in data URL: {e}") from e


def decode_image(data: bytes) -> np.ndarray:
    """Decode an encoded image file (PNG, JPEG, ...) into a pixel buffer.

    Args:
        data: Raw bytes of the image file.

    Returns:
        Decoded image as an OpenCV array (grayscale, BGR or BGRA).

    Raises:
        ImageLoadError: If OpenCV cannot decode the bytes.
    """
    if not data:
        raise ImageLoadError("Image data is empty")
    encoded = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(encoded, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ImageLoadError("Image data could not be decoded")
    return image


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Reduce 16-bit and floating point images to 8-bit.

    Floating point images are expected to hold intensities in [0, 1].
    """
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image // 257).astype(np.uint8)
    if image.dtype == np.bool_:
        return image.astype(np.uint8) * 255
    if np.issubdtype(image.dtype, np.floating):
        return np.rint(np.clip(image, 0.0, 1.0) * 255.0).astype(np.uint8)
    if np.issubdtype(image.dtype, np.integer):
        return np.clip(image, 0, 255).astype(np.uint8)
    raise InvalidImageError(f"Unsupported pixel type {image.dtype}")


def validate_image(image: np.ndarray) -> np.ndarray:
    """Check that a decoded buffer can be processed.

    Args:
        image: Decoded pixel buffer.

    Returns:
        The same buffer, for chaining.

    Raises:
        InvalidImageError: If the buffer has zero area, is not 2D or 3D, or
            has a channel count other than 1, 3 or 4.
    """
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3):
        raise InvalidImageError(f"Expected a 2D or 3D buffer, got {image.ndim}D")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImageError(f"Image has zero area: {image.shape}")
    if image.ndim == 3 and image.shape[2] not in VALID_CHANNEL_COUNTS:
        raise InvalidImageError(f"Unsupported channel count {image.shape[2]}")
    return image


def load_image(source: bytes | str | Path | np.ndarray) -> np.ndarray:
    """Load an image from any supported source.

    Args:
        source: Encoded image bytes, a path to an image file, a base64 data
            URL, or a decoded array in OpenCV channel order (BGR/BGRA).

    Returns:
        Validated 8-bit image buffer owned by the caller.

    Raises:
        ImageLoadError: If the source cannot be read or decoded.
        InvalidImageError: If the decoded buffer has an unusable shape.
    """
    if source is None:
        raise ImageLoadError("No image provided")

    if isinstance(source, np.ndarray):
        image = validate_image(source)
        return to_uint8(image).copy()

    if isinstance(source, (bytes, bytearray, memoryview)):
        image = decode_image(bytes(source))
    elif isinstance(source, str) and source.startswith("data:"):
        image = decode_image(decode_data_url(source))
    elif isinstance(source, (str, Path)):
        path = Path(source)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageLoadError(f"Cannot read image file {path}: {e}") from e
        image = decode_image(data)
    else:
        raise ImageLoadError(f"Unsupported image source {type(source).__name__}")

    image = to_uint8(validate_image(image))
    logger.debug(f"Loaded image with shape {image.shape}")
    return image
