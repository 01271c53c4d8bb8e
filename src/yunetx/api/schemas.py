"""Pydantic response schemas for the yunetx API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from yunetx.face import Face


class LandmarkPoint(BaseModel):
    """A landmark in pixel coordinates of the uploaded image."""

    model_config = ConfigDict(from_attributes=True)

    x: float
    y: float


class FaceLandmarksSchema(BaseModel):
    """Five landmarks; right/left refer to the subject's own sides."""

    model_config = ConfigDict(from_attributes=True)

    right_eye: LandmarkPoint
    left_eye: LandmarkPoint
    nose: LandmarkPoint
    mouth_right: LandmarkPoint
    mouth_left: LandmarkPoint


class DetectedFace(BaseModel):
    """A single detected face with normalized bounding box, score, and landmarks."""

    x: float = Field(description="Relative bounding box x position (0.0-1.0)")
    y: float = Field(description="Relative bounding box y position (0.0-1.0)")
    width: float = Field(description="Relative bounding box width (0.0-1.0, may be negative)")
    height: float = Field(description="Relative bounding box height (0.0-1.0, may be negative)")
    score: float = Field(description="Detection confidence (nominally 0.0-1.0)")
    size: float = Field(description="Minimum of relative width and height")
    landmarks: FaceLandmarksSchema

    @classmethod
    def from_face(cls, face: Face) -> DetectedFace:
        rect = face.normalized_rectangle()
        return cls(
            x=rect.x,
            y=rect.y,
            width=rect.w,
            height=rect.h,
            score=face.confidence,
            size=face.size(),
            landmarks=FaceLandmarksSchema.model_validate(face.landmarks),
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    models_loaded: list[str]
    concurrent_requests: int
    queue_depth: int


class ModelInfo(BaseModel):
    """Information about an available model."""

    name: str
    status: str = Field(description="Model status: 'active' or 'available'")
    license: str


class ModelsResponse(BaseModel):
    """Response for the models listing endpoint."""

    models: list[ModelInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
