"""Detected face records built from native detection output."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from yunetx.geometry import Point, Rect
from yunetx.ml.face_detector import LANDMARK_VALUES

if TYPE_CHECKING:
    from collections.abc import Sequence

    from yunetx.ml.face_detector import RawDetection


@dataclass(frozen=True)
class FaceLandmarks:
    """Five facial landmarks in pixel coordinates.

    "Right" and "left" follow the face itself: a person's right eye is seen
    on the left side of the image. Landmarks may lie outside the image, as
    YuNet extrapolates positions it cannot see.
    """

    right_eye: Point
    left_eye: Point
    nose: Point
    mouth_right: Point
    mouth_left: Point

    @classmethod
    def from_landmark_array(cls, values: Sequence[int]) -> FaceLandmarks:
        """Decode the native flat array of five x,y pairs."""
        if len(values) != LANDMARK_VALUES:
            raise ValueError(f"Expected {LANDMARK_VALUES} landmark values, got {len(values)}")
        return cls(
            right_eye=Point(float(values[0]), float(values[1])),
            left_eye=Point(float(values[2]), float(values[3])),
            nose=Point(float(values[4]), float(values[5])),
            mouth_right=Point(float(values[6]), float(values[7])),
            mouth_left=Point(float(values[8]), float(values[9])),
        )


@dataclass(frozen=True)
class Face:
    """A single face found by the detector.

    Attributes:
        confidence: How confident (0..1) YuNet is that the rectangle is a face.
            Not clamped.
        rectangle: Face location in absolute pixel coordinates. May fall
            outside the image and may have negative width or height.
        detection_dimensions: (width, height) of the image the face was
            detected in.
        landmarks: Coordinates of five face landmarks.
    """

    confidence: float
    rectangle: Rect
    detection_dimensions: tuple[int, int]
    landmarks: FaceLandmarks

    @classmethod
    def from_raw_detection(cls, raw: RawDetection, detection_dimensions: tuple[int, int]) -> Face:
        return cls(
            confidence=raw.score,
            rectangle=Rect.with_size(float(raw.x), float(raw.y), float(raw.w), float(raw.h)),
            detection_dimensions=detection_dimensions,
            landmarks=FaceLandmarks.from_landmark_array(raw.landmarks),
        )

    def normalized_rectangle(self) -> Rect:
        """Face rectangle in normalized 0..1 coordinates.

        Raises:
            ZeroDivisionError: If the detection dimensions contain a zero.
        """
        width, height = self.detection_dimensions
        return Rect.with_size(
            self.rectangle.x / width,
            self.rectangle.y / height,
            self.rectangle.w / width,
            self.rectangle.h / height,
        )

    def size(self) -> float:
        """The minimum of normalized width and height."""
        rect = self.normalized_rectangle()
        return min(rect.w, rect.h)

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence": self.confidence,
            "rectangle": asdict(self.rectangle),
            "detection_dimensions": list(self.detection_dimensions),
            "landmarks": asdict(self.landmarks),
        }
