"""Tests for the yunetx HTTP API."""

from __future__ import annotations

import io
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from unittest.mock import patch

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import cv2
import httpx
import numpy as np
import pytest
from fastapi import FastAPI, status

from conftest import FakeDetector, make_raw
from yunetx.config import get_settings
from yunetx.errors import FaceDetectionFailedError
from yunetx.main import create_app
from yunetx.ml.face_detector import RawDetection
from yunetx.ml.inference import InferencePool


@dataclass
class FakeModelManager:
    detector: FakeDetector
    loaded: list[str] = field(default_factory=list)

    def get_detector(self, model_name: str) -> FakeDetector:
        if model_name not in self.loaded:
            self.loaded.append(model_name)
        return self.detector

    def get_loaded_models(self) -> list[str]:
        return list(self.loaded)

    def shutdown(self) -> None:
        self.loaded.clear()


class FailingDetector(FakeDetector):
    def detect(self, data: bytes, width: int, height: int, row_stride: int) -> list[RawDetection]:
        raise FaceDetectionFailedError()


class UnloadableModelManager(FakeModelManager):
    def __init__(self, error: Exception) -> None:
        super().__init__(FakeDetector())
        self.error = error

    def get_detector(self, model_name: str) -> FakeDetector:
        raise self.error


def _init_app_state(app: FastAPI, detector: FakeDetector | None = None, **env_overrides: str) -> None:
    """Manually initialize app state (ASGITransport does not trigger lifespan)."""
    with patch.dict(os.environ, env_overrides):
        settings = get_settings()
    app.state.settings = settings
    app.state.inference_pool = InferencePool(settings)
    app.state.model_manager = FakeModelManager(detector or FakeDetector())


async def _make_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
    pool: InferencePool = app.state.inference_pool
    pool.shutdown()


def _png(width: int = 200, height: int = 100) -> io.BytesIO:
    ok, encoded = cv2.imencode(".png", np.zeros((height, width, 3), dtype=np.uint8))
    assert ok
    return io.BytesIO(encoded.tobytes())


@pytest.fixture()
def detector() -> FakeDetector:
    return FakeDetector(results=[make_raw(score=0.95), make_raw(score=0.4, x=100, w=-10)])


@pytest.fixture()
def app(detector: FakeDetector) -> FastAPI:
    """Create a fresh app instance with default settings."""
    application = create_app()
    _init_app_state(application, detector)
    return application


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    """Async HTTP client for testing the app."""
    async for ac in _make_client(app):
        yield ac


class TestHealthEndpoint:
    async def test_health_returns_ok(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "ok"
        assert data["models_loaded"] == []
        assert data["concurrent_requests"] == 0
        assert data["queue_depth"] == 0

    async def test_health_lists_loaded_model_after_detection(self, client: httpx.AsyncClient) -> None:
        await client.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
        response = await client.get("/api/v1/health")
        assert response.json()["models_loaded"] == ["yunet_2023mar"]


class TestDetectFacesEndpoint:
    async def test_returns_normalized_faces_in_native_order(
        self, client: httpx.AsyncClient, detector: FakeDetector
    ) -> None:
        response = await client.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})

        assert response.status_code == status.HTTP_200_OK
        faces = response.json()
        assert [f["score"] for f in faces] == pytest.approx([0.95, 0.4])
        first = faces[0]
        assert first["x"] == pytest.approx(0.1)
        assert first["y"] == pytest.approx(0.1)
        assert first["width"] == pytest.approx(0.2)
        assert first["height"] == pytest.approx(0.2)
        assert first["size"] == pytest.approx(0.2)
        assert first["landmarks"]["right_eye"] == {"x": 10.0, "y": 20.0}
        assert faces[1]["width"] == pytest.approx(-0.05)
        assert detector.calls == [(200 * 100 * 3, 200, 100, 600)]

    async def test_min_confidence_query_filters(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/detect-faces",
            params={"min_confidence": 0.5},
            files={"file": ("a.png", _png(), "image/png")},
        )
        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()) == 1

    async def test_min_confidence_from_settings(self) -> None:
        app = create_app()
        _init_app_state(app, FakeDetector(results=[make_raw(score=0.3)]), YUNETX_MIN_CONFIDENCE="0.5")
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.json() == []

    async def test_no_faces_returns_empty_list(self) -> None:
        app = create_app()
        _init_app_state(app, FakeDetector())
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.status_code == status.HTTP_200_OK
            assert response.json() == []

    async def test_undecodable_upload_returns_400(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/detect-faces",
            files={"file": ("test.jpg", io.BytesIO(b"fake image data"), "image/jpeg")},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Invalid input file"

    async def test_oversized_file_returns_413(self) -> None:
        app = create_app()
        _init_app_state(app, YUNETX_MAX_FILE_SIZE="10")
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    async def test_too_many_pixels_returns_413(self) -> None:
        app = create_app()
        _init_app_state(app, YUNETX_MAX_IMAGE_PIXELS="100")
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    async def test_detector_failure_returns_500(self) -> None:
        app = create_app()
        _init_app_state(app, FailingDetector())
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
            assert response.json()["detail"] == "Face detection failed"

    async def test_saturated_pool_returns_503(self, client: httpx.AsyncClient) -> None:
        with patch.object(InferencePool, "detect", side_effect=TimeoutError):
            response = await client.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    async def test_decoding_waits_for_pool_slot(self, client: httpx.AsyncClient, detector: FakeDetector) -> None:
        with patch.object(InferencePool, "run", side_effect=TimeoutError) as mock_run:
            response = await client.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert mock_run.call_args.args[0].__name__ == "decode_image"
        assert detector.calls == []

    async def test_model_download_failure_returns_500_with_detail(self) -> None:
        app = create_app()
        _init_app_state(app)
        app.state.model_manager = UnloadableModelManager(
            FaceDetectionFailedError("Could not download yunet_2023mar")
        )
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
            assert response.json() == {"detail": "Could not download yunet_2023mar"}

    async def test_unknown_model_returns_500_with_detail(self) -> None:
        app = create_app()
        _init_app_state(app)
        app.state.model_manager = UnloadableModelManager(KeyError("Unknown model: yunet_1999"))
        async for ac in _make_client(app):
            response = await ac.post("/api/v1/detect-faces", files={"file": ("a.png", _png(), "image/png")})
            assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
            assert response.json() == {"detail": "Unknown model: yunet_1999"}


class TestModelsEndpoint:
    async def test_models_returns_list(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/models")
        assert response.status_code == status.HTTP_200_OK
        names = {m["name"] for m in response.json()["models"]}
        assert names == {"yunet_2023mar", "yunet_2023mar_int8"}

    async def test_default_model_is_active(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/models")
        models = response.json()["models"]
        active_names = {m["name"] for m in models if m["status"] == "active"}
        assert active_names == {"yunet_2023mar"}

    async def test_configured_model_is_active(self) -> None:
        app = create_app()
        _init_app_state(app, YUNETX_DETECTION_MODEL="yunet_2023mar_int8")
        async for ac in _make_client(app):
            models = (await ac.get("/api/v1/models")).json()["models"]
            int8 = next(m for m in models if m["name"] == "yunet_2023mar_int8")
            assert int8["status"] == "active"


class TestAuthentication:
    async def test_no_auth_required_by_default(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health")
        assert response.status_code == status.HTTP_200_OK

    async def test_auth_required_when_api_key_set(self) -> None:
        app = create_app()
        _init_app_state(app, YUNETX_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.get("/api/v1/health")
            assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_auth_passes_with_correct_key(self) -> None:
        app = create_app()
        _init_app_state(app, YUNETX_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.get(
                "/api/v1/health",
                headers={"Authorization": "Bearer test-secret-key"},
            )
            assert response.status_code == status.HTTP_200_OK

    async def test_auth_fails_with_wrong_key(self) -> None:
        app = create_app()
        _init_app_state(app, YUNETX_API_KEY="test-secret-key")
        async for ac in _make_client(app):
            response = await ac.get(
                "/api/v1/health",
                headers={"Authorization": "Bearer wrong-key"},
            )
            assert response.status_code == status.HTTP_401_UNAUTHORIZED
