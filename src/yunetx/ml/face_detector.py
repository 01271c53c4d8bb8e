"""Face detector boundary.

The native detector is treated as an opaque capability: given a BGR pixel
buffer and its dimensions it returns fixed-layout raw records. Conversion into
`Face` values happens in `yunetx.face` and never depends on the native code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

LANDMARK_VALUES = 10


@dataclass(frozen=True)
class RawDetection:
    """One native detection record.

    Coordinates are integer pixels in the searched image. Width and height
    are occasionally negative. ``landmarks`` holds five x,y pairs in the
    order right eye, left eye, nose, right mouth corner, left mouth corner.
    """

    score: float
    x: int
    y: int
    w: int
    h: int
    landmarks: tuple[int, ...]


class FaceDetector(Protocol):
    """Protocol for native face detection backends."""

    @property
    def model_name(self) -> str:
        """Return the model identifier string."""
        ...

    def detect(self, data: bytes, width: int, height: int, row_stride: int) -> list[RawDetection]:
        """Detect faces in an interleaved 8-bit BGR buffer.

        Args:
            data: Row-major pixel bytes, 3 channels per pixel.
            width: Image width in pixels.
            height: Image height in pixels.
            row_stride: Bytes per row, always ``3 * width``.

        Returns:
            Raw detection records in the detector's own order.
        """
        ...
