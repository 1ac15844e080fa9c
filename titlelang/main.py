"""FastAPI application – title language service.

Endpoints
---------
POST /detect              – detect the language of one title
POST /detect/batch        – detect many titles, with statistics
POST /statistics          – aggregate previously returned results
POST /filter              – keep videos whose title is in a given language
POST /youtube-thumbnails  – best thumbnail URL per video ID
GET  /health              – detector status and service info
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from titlelang.config import settings
from titlelang.models import (
    BatchDetectRequest,
    BatchDetectResponse,
    BatchStatistics,
    DetectionResult,
    DetectRequest,
    FilterRequest,
    FilterResponse,
    HealthResponse,
    StatisticsRequest,
    ThumbnailRequest,
    ThumbnailResponse,
)
from titlelang.pipeline.orchestrator import get_detection_service, get_language_statistics
from titlelang.thumbnails import fetch_thumbnails

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
_log = logging.getLogger("titlelang.main")

# ── Lifespan (detector loading at startup) ──────────────────────────────────

_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the primary detector once at startup."""
    global _start_time
    _start_time = time.time()

    service = get_detection_service()
    ready = await service.warm_up()
    _log.info("Title language service started (backend=%s, ready=%s)", service.backend, ready)

    yield  # app is running

    await service.close()
    _log.info("Title language service stopped")


# ── Application ─────────────────────────────────────────────────────────────

app = FastAPI(
    title="Title Language Service",
    version="1.0.0",
    lifespan=lifespan,
)


@app.post("/detect", response_model=DetectionResult)
async def detect(request: DetectRequest) -> DetectionResult:
    """Detect the language of a single title."""
    return await get_detection_service().detect_title_language(request.title)


@app.post("/detect/batch", response_model=BatchDetectResponse)
async def detect_batch(request: BatchDetectRequest) -> BatchDetectResponse:
    """Detect every title; results keep the request's order."""
    results = await get_detection_service().detect_languages_batch(request.titles)
    return BatchDetectResponse(
        results=results,
        statistics=get_language_statistics(results),
    )


@app.post("/statistics", response_model=BatchStatistics)
def statistics(request: StatisticsRequest) -> BatchStatistics:
    """Aggregate detection results by language and confidence tier."""
    return get_language_statistics(request.results)


@app.post("/filter", response_model=FilterResponse)
async def filter_videos(request: FilterRequest) -> FilterResponse:
    """Split videos into those whose title is in ``language`` and the rest."""
    return await get_detection_service().filter_by_language(
        request.videos, request.language
    )


@app.post("/youtube-thumbnails", response_model=ThumbnailResponse)
async def youtube_thumbnails(request: ThumbnailRequest):
    """Fetch the best-resolution thumbnail URL for each video ID."""
    if not request.video_ids:
        return JSONResponse({"error": "Video IDs array is required"}, status_code=400)

    api_key = request.api_key or settings.youtube_api_key
    if not api_key:
        return JSONResponse({"error": "YouTube API key is required"}, status_code=400)

    try:
        thumbnails = await fetch_thumbnails(request.video_ids, api_key)
    except Exception as exc:
        _log.error("YouTube thumbnails request failed: %s", exc)
        return JSONResponse(
            {"error": "Failed to fetch thumbnails", "details": str(exc)},
            status_code=500,
        )
    return ThumbnailResponse(thumbnails=thumbnails)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Return service health and detector status."""
    service = get_detection_service()
    return HealthResponse(
        status="ok",
        backend=service.backend,
        detector_loaded=service.detector.loaded,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
