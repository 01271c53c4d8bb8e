"""Environment-based configuration for yunetx."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from YUNETX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="YUNETX_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Authentication (None = disabled)
    api_key: str | None = None

    # Model selection
    detection_model: str = "yunet_2023mar"
    model_path: str | None = None
    models_dir: str = "models"

    # Native detector parameters
    score_threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    nms_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    top_k: int = Field(default=5000, ge=1)

    # Response filtering
    min_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)

    # Input limits
    max_image_pixels: int = Field(default=16_777_216, ge=1)
    max_file_size: int = Field(default=209_715_200, ge=1)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
