"""Shared test helpers: fixed-output detectors standing in for YuNet."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from yunetx.ml.face_detector import RawDetection


def make_raw(
    score: float = 0.95,
    x: int = 20,
    y: int = 10,
    w: int = 40,
    h: int = 20,
    landmarks: tuple[int, ...] = (10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
) -> RawDetection:
    return RawDetection(score=score, x=x, y=y, w=w, h=h, landmarks=landmarks)


@dataclass
class FakeDetector:
    """Returns a fixed list of raw detections and records each call."""

    results: list[RawDetection] = field(default_factory=list)
    calls: list[tuple[int, int, int, int]] = field(default_factory=list)

    @property
    def model_name(self) -> str:
        return "fake"

    def detect(self, data: bytes, width: int, height: int, row_stride: int) -> list[RawDetection]:
        self.calls.append((len(data), width, height, row_stride))
        return list(self.results)


@pytest.fixture()
def fake_detector() -> FakeDetector:
    return FakeDetector()
