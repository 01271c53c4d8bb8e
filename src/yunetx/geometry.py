"""Plain geometric value types shared by detection results."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """A 2D point in pixel or normalized units."""

    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner and size.

    Width and height are not validated and may be negative: the native
    detector occasionally reports such rectangles and they are passed on
    unchanged.
    """

    x: float
    y: float
    w: float
    h: float

    @classmethod
    def with_size(cls, x: float, y: float, w: float, h: float) -> Rect:
        return cls(x=x, y=y, w=w, h=h)

    @classmethod
    def from_position(cls, pos: Point, w: float, h: float) -> Rect:
        return cls(x=pos.x, y=pos.y, w=w, h=h)
