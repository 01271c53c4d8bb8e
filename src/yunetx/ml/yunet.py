"""YuNet face detector backed by OpenCV's native FaceDetectorYN.

Detection, anchor decoding and non-max suppression all happen inside OpenCV.
This module only hands the pixel buffer across and reads back the
``N x 15`` float result matrix::

    [x, y, w, h, re_x, re_y, le_x, le_y, nose_x, nose_y, mr_x, mr_y, ml_x, ml_y, score]
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import cv2
import numpy as np

from yunetx.errors import FaceDetectionFailedError
from yunetx.ml.face_detector import LANDMARK_VALUES, RawDetection

if TYPE_CHECKING:
    from pathlib import Path

    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

CHANNELS = 3
RESULT_COLUMNS = 4 + LANDMARK_VALUES + 1


class YuNetDetector:
    """Runs YuNet through ``cv2.FaceDetectorYN``.

    The OpenCV object keeps its input size as state, so each call resizes it
    to the incoming image under a lock.
    """

    def __init__(
        self,
        model_path: str | Path,
        model_name: str = "yunet",
        score_threshold: float = 0.9,
        nms_threshold: float = 0.3,
        top_k: int = 5000,
    ) -> None:
        self._model_name = model_name
        self._lock = threading.Lock()
        try:
            self._detector = cv2.FaceDetectorYN.create(
                str(model_path),
                "",
                (320, 320),
                score_threshold,
                nms_threshold,
                top_k,
            )
        except cv2.error as exc:
            raise FaceDetectionFailedError(f"Could not load YuNet model from {model_path}") from exc
        logger.info("YuNet detector initialized with model: %s", model_path)

    @property
    def model_name(self) -> str:
        return self._model_name

    def detect(self, data: bytes, width: int, height: int, row_stride: int) -> list[RawDetection]:
        image = _as_bgr_image(data, width, height, row_stride)
        with self._lock:
            try:
                self._detector.setInputSize((width, height))
                _, faces = self._detector.detect(image)
            except cv2.error as exc:
                raise FaceDetectionFailedError() from exc

        if faces is None:
            return []
        return _parse_results(faces)


def _as_bgr_image(data: bytes, width: int, height: int, row_stride: int) -> NDArray[np.uint8]:
    """View the caller's buffer as an HxWx3 array without reordering channels."""
    rows = np.frombuffer(data, dtype=np.uint8, count=height * row_stride).reshape(height, row_stride)
    return np.ascontiguousarray(rows[:, : width * CHANNELS]).reshape(height, width, CHANNELS)


def _parse_results(faces: NDArray[np.float32]) -> list[RawDetection]:
    if faces.ndim != 2 or faces.shape[1] < RESULT_COLUMNS:
        raise FaceDetectionFailedError(f"Unexpected YuNet output shape {faces.shape}")

    detections: list[RawDetection] = []
    for row in faces:
        # The native record holds integer pixels; int() truncates toward zero like a C cast.
        x, y, w, h = (int(v) for v in row[:4])
        landmarks = tuple(int(v) for v in row[4 : 4 + LANDMARK_VALUES])
        detections.append(
            RawDetection(
                score=float(row[RESULT_COLUMNS - 1]),
                x=x,
                y=y,
                w=w,
                h=h,
                landmarks=landmarks,
            )
        )
    return detections
