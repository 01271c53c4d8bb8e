"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI

from yunetx.api.routes import router
from yunetx.config import get_settings
from yunetx.ml.inference import InferencePool
from yunetx.ml.model_manager import HubModelManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load the detector on startup, release it on shutdown."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting yunetx (model=%s, score_threshold=%s, max_concurrent=%s)",
        settings.detection_model,
        settings.score_threshold,
        settings.max_concurrent,
    )

    model_manager = HubModelManager(settings)
    model_manager.get_detector(settings.detection_model)
    app.state.model_manager = model_manager
    app.state.inference_pool = InferencePool(settings)

    logger.info("yunetx ready")
    yield

    logger.info("Shutting down yunetx")
    app.state.inference_pool.shutdown()
    model_manager.shutdown()
    logger.info("yunetx shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="yunetx",
        description="YuNet face detection with normalized rectangles and landmarks",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("yunetx.main:app", host=settings.host, port=settings.port)
