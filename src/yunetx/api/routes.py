"""API route definitions."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from yunetx.api.dependencies import get_inference_pool, get_model_manager, get_settings, verify_api_key
from yunetx.api.schemas import (
    DetectedFace,
    ErrorResponse,
    HealthResponse,
    ModelInfo,
    ModelsResponse,
)
from yunetx.detection import decode_image
from yunetx.errors import FaceDetectionFailedError, InvalidFileError
from yunetx.ml.model_manager import MODEL_REGISTRY

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


@router.post(
    "/detect-faces",
    response_model=list[DetectedFace],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Detect faces in an image",
)
async def detect_faces(
    request: Request,
    file: UploadFile,
    min_confidence: Annotated[float | None, Query(ge=0.0, le=1.0)] = None,
) -> list[DetectedFace] | JSONResponse:
    """Detect faces in an uploaded image, in the order the detector reports them."""
    settings = get_settings(request)
    pool = get_inference_pool(request)
    manager = get_model_manager(request)

    payload = await file.read(settings.max_file_size + 1)
    if len(payload) > settings.max_file_size:
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "File too large")

    try:
        image = await pool.run(decode_image, payload)
    except TimeoutError:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Detection queue is full, retry later")
    except InvalidFileError as exc:
        logger.info("Rejected upload %r: %s", file.filename, exc)
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    height, width = image.shape[:2]
    if width * height > settings.max_image_pixels:
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Image has too many pixels")

    try:
        detector = await run_in_threadpool(manager.get_detector, settings.detection_model)
        faces = await pool.detect(image.tobytes(), width, height, detector)
    except TimeoutError:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Detection queue is full, retry later")
    except InvalidFileError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    except KeyError as exc:
        logger.error("Configured detection model is not registered: %s", settings.detection_model)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc.args[0]))
    except FaceDetectionFailedError as exc:
        logger.exception("Face detection failed for %r", file.filename)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    threshold = settings.min_confidence if min_confidence is None else min_confidence
    return [DetectedFace.from_face(face) for face in faces if face.confidence >= threshold]


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    pool = get_inference_pool(request)
    return HealthResponse(
        status="ok",
        models_loaded=get_model_manager(request).get_loaded_models(),
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available models",
)
async def list_models(request: Request) -> ModelsResponse:
    """Return the YuNet variants and which one is configured."""
    active = get_settings(request).detection_model
    return ModelsResponse(
        models=[
            ModelInfo(
                name=spec.name,
                status="active" if spec.name == active else "available",
                license=spec.license,
            )
            for spec in MODEL_REGISTRY.values()
        ]
    )
