"""Exceptions raised by yunetx."""

from __future__ import annotations


class YuNetError(Exception):
    """Base class for face detection failures."""

    default_message = "YuNet error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidFileError(YuNetError, ValueError):
    """The supplied image or pixel buffer cannot be used for detection."""

    default_message = "Invalid input file"


class FaceDetectionFailedError(YuNetError, RuntimeError):
    """The native detector failed or could not be loaded."""

    default_message = "Face detection failed"
