"""Face detection entry points.

Callers hand over a decoded BGR image (as a raw buffer or a numpy array) and
get back `Face` values in the order the native detector reported them. No
sorting or filtering happens here; discarding low-confidence or negative-area
faces is up to the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import cv2
import numpy as np

from yunetx.errors import InvalidFileError
from yunetx.face import Face

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from yunetx.ml.face_detector import FaceDetector

logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 3


def detect_faces(data: bytes, width: int, height: int, detector: FaceDetector) -> list[Face]:
    """Detect faces in an interleaved 8-bit BGR buffer.

    Args:
        data: Row-major pixel bytes, ``3 * width`` bytes per row, no padding.
        width: Image width in pixels.
        height: Image height in pixels.
        detector: Native detector to run.

    Returns:
        One `Face` per native detection, in native order. May be empty.

    Raises:
        InvalidFileError: If the dimensions are not positive or the buffer is
            shorter than ``height * 3 * width`` bytes.
        FaceDetectionFailedError: If the native detector fails.
    """
    if width <= 0 or height <= 0:
        raise InvalidFileError(f"Invalid input file: image dimensions must be positive, got {width}x{height}")

    row_stride = BYTES_PER_PIXEL * width
    expected = height * row_stride
    if len(data) < expected:
        raise InvalidFileError(
            f"Invalid input file: buffer holds {len(data)} bytes, {width}x{height} BGR needs {expected}"
        )

    raw_detections = detector.detect(data, width, height, row_stride)
    faces = [Face.from_raw_detection(raw, (width, height)) for raw in raw_detections]
    logger.debug("Detected %d face(s) in %dx%d image with %s", len(faces), width, height, detector.model_name)
    return faces


def detect_faces_in_image(image: NDArray[np.uint8], detector: FaceDetector) -> list[Face]:
    """Detect faces in an HxWx3 uint8 BGR array, as produced by OpenCV."""
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] != BYTES_PER_PIXEL:
        raise InvalidFileError(f"Invalid input file: expected HxWx3 uint8 image, got {image.dtype} {image.shape}")
    height, width = image.shape[:2]
    return detect_faces(np.ascontiguousarray(image).tobytes(), width, height, detector)


def decode_image(image_bytes: bytes) -> NDArray[np.uint8]:
    """Decode encoded image bytes (JPEG, PNG, ...) into an HxWx3 BGR array.

    Raises:
        InvalidFileError: If OpenCV cannot decode the data.
    """
    buffer = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
    if image is None:
        raise InvalidFileError()
    return image
