"""Centralised, env-driven configuration using pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """All tunables are loaded from environment variables (or .env file)."""

    # ── Primary detector ────────────────────────────────────────────────────
    # One of: "langdetect", "fasttext", "google"
    detector_backend: str = Field(default="langdetect", alias="DETECTOR_BACKEND")
    detector_timeout_seconds: float = Field(
        default=5.0, alias="DETECTOR_TIMEOUT_SECONDS"
    )
    batch_concurrency: int = Field(default=1, ge=1, alias="BATCH_CONCURRENCY")

    # ── Local model (fastText lid.176) ──────────────────────────────────────
    fasttext_model_path: str = Field(
        default="./models/lid.176.bin", alias="FASTTEXT_MODEL_PATH"
    )

    # ── Remote detection (Google Cloud Translation v2) ──────────────────────
    google_api_key: str = Field(default="", alias="GOOGLE_API_KEY")
    google_detect_url: str = Field(
        default="https://translation.googleapis.com/language/translate/v2/detect",
        alias="GOOGLE_DETECT_URL",
    )

    # ── Thumbnails (YouTube Data API v3) ────────────────────────────────────
    youtube_api_key: str = Field(default="", alias="YOUTUBE_API_KEY")
    youtube_videos_url: str = Field(
        default="https://www.googleapis.com/youtube/v3/videos",
        alias="YOUTUBE_VIDEOS_URL",
    )
    thumbnail_timeout_seconds: float = Field(
        default=30.0, alias="THUMBNAIL_TIMEOUT_SECONDS"
    )

    # ── Logging ─────────────────────────────────────────────────────────────
    log_path: str = Field(default="./logs/detections.log", alias="LOG_PATH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "populate_by_name": True,
        "extra": "ignore",
    }


# Module-level singleton – import this everywhere
settings = Settings()
