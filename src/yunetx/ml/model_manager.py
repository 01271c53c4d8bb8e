"""Model manager: download the YuNet weights and cache detector instances.

OpenCV ships the YuNet inference code but not its weights. The ONNX files are
fetched from the OpenCV organisation on HuggingFace on first use, unless a
local model path is configured.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from huggingface_hub import hf_hub_download
from huggingface_hub.errors import HfHubHTTPError

from yunetx.errors import FaceDetectionFailedError
from yunetx.ml.yunet import YuNetDetector

if TYPE_CHECKING:
    from yunetx.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol (kept for test mocking)
# ---------------------------------------------------------------------------


class ModelManager(Protocol):
    """Protocol for model lifecycle management."""

    def ensure_downloaded(self, model_name: str) -> Path:
        """Ensure a model is downloaded and return its file path."""
        ...

    def get_detector(self, model_name: str) -> YuNetDetector:
        """Return a cached or newly created detector."""
        ...

    def get_loaded_models(self) -> list[str]:
        """Return names of currently loaded models."""
        ...

    def shutdown(self) -> None:
        """Drop all cached detectors."""
        ...


# ---------------------------------------------------------------------------
# Model registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelSpec:
    """Static metadata for a single YuNet weights file."""

    name: str
    repo_id: str
    filename: str
    license: str


MODEL_REGISTRY: dict[str, ModelSpec] = {
    "yunet_2023mar": ModelSpec(
        name="yunet_2023mar",
        repo_id="opencv/face_detection_yunet",
        filename="face_detection_yunet_2023mar.onnx",
        license="MIT",
    ),
    "yunet_2023mar_int8": ModelSpec(
        name="yunet_2023mar_int8",
        repo_id="opencv/face_detection_yunet",
        filename="face_detection_yunet_2023mar_int8.onnx",
        license="MIT",
    ),
}


# ---------------------------------------------------------------------------
# Concrete implementation
# ---------------------------------------------------------------------------


class HubModelManager:
    """Downloads YuNet weights and keeps one detector per model."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._models_dir = Path(settings.models_dir)

        self._lock = threading.Lock()
        self._detectors: dict[str, YuNetDetector] = {}
        self._model_paths: dict[str, Path] = {}

    # -- Public API ---------------------------------------------------------

    def ensure_downloaded(self, model_name: str) -> Path:
        """Return the local weights file, downloading it if needed."""
        spec = self._get_spec(model_name)

        if model_name == self._settings.detection_model and self._settings.model_path:
            return Path(self._settings.model_path)

        if model_name in self._model_paths:
            path = self._model_paths[model_name]
            if path.exists():
                return path

        try:
            self._models_dir.mkdir(parents=True, exist_ok=True)
            downloaded = Path(
                hf_hub_download(
                    repo_id=spec.repo_id,
                    filename=spec.filename,
                    local_dir=str(self._models_dir),
                )
            )
        except (OSError, HfHubHTTPError) as exc:
            raise FaceDetectionFailedError(f"Could not download {model_name}") from exc
        self._model_paths[model_name] = downloaded
        logger.info("Downloaded %s to %s", model_name, downloaded)
        return downloaded

    def get_detector(self, model_name: str) -> YuNetDetector:
        """Return a cached detector, creating one if needed."""
        with self._lock:
            cached = self._detectors.get(model_name)
            if cached is not None:
                return cached

        model_path = self.ensure_downloaded(model_name)
        detector = YuNetDetector(
            model_path,
            model_name=model_name,
            score_threshold=self._settings.score_threshold,
            nms_threshold=self._settings.nms_threshold,
            top_k=self._settings.top_k,
        )

        with self._lock:
            # Double-check: another thread may have created it while we loaded.
            existing = self._detectors.get(model_name)
            if existing is not None:
                return existing
            self._detectors[model_name] = detector
            logger.info("Loaded detector for %s", model_name)
            return detector

    def get_loaded_models(self) -> list[str]:
        """Return names of models with a live detector."""
        with self._lock:
            return list(self._detectors.keys())

    def shutdown(self) -> None:
        """Drop all cached detectors."""
        with self._lock:
            self._detectors.clear()
            logger.info("All detectors released")

    # -- Internal -----------------------------------------------------------

    @staticmethod
    def _get_spec(model_name: str) -> ModelSpec:
        try:
            return MODEL_REGISTRY[model_name]
        except KeyError:
            raise KeyError(f"Unknown model: {model_name}") from None
