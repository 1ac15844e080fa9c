"""Thumbnail enrichment via the YouTube Data API v3.

``videos.list`` accepts at most 50 IDs per request, so the ID list is split
into chunks which are fetched concurrently.  For every returned video the
largest available thumbnail is picked.  A chunk that fails is logged and
skipped; the caller gets whatever the other chunks returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx

from titlelang.config import settings

_log = logging.getLogger("titlelang.thumbnails")

# Hard limit imposed by videos.list
MAX_IDS_PER_REQUEST = 50

THUMBNAIL_PREFERENCE = ("maxres", "high", "medium", "default")


def chunk_ids(video_ids: Sequence[str], size: int = MAX_IDS_PER_REQUEST) -> list[list[str]]:
    return [list(video_ids[i : i + size]) for i in range(0, len(video_ids), size)]


def best_thumbnail_url(thumbnails: dict[str, Any]) -> str:
    """Return the URL of the highest-preference thumbnail, or ``""``."""
    for key in THUMBNAIL_PREFERENCE:
        entry = thumbnails.get(key)
        url = entry.get("url") if isinstance(entry, dict) else None
        if isinstance(url, str) and url:
            return url
    return ""


async def _fetch_chunk(
    client: httpx.AsyncClient,
    chunk: list[str],
    api_key: str,
    chunk_num: int,
    total_chunks: int,
) -> dict[str, str]:
    params = {
        "id": ",".join(chunk),
        "part": "snippet",
        "fields": "items(id,snippet(thumbnails))",
        "key": api_key,
    }
    try:
        _log.info("Fetching thumbnail chunk %d/%d (%d ids)", chunk_num, total_chunks, len(chunk))
        resp = await client.get(settings.youtube_videos_url, params=params)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as exc:
        _log.error(
            "YouTube API error for chunk %d/%d: %s %s",
            chunk_num, total_chunks, exc.response.status_code, exc.response.text,
        )
        return {}
    except (httpx.HTTPError, ValueError) as exc:
        _log.error("Thumbnail chunk %d/%d failed: %s", chunk_num, total_chunks, exc)
        return {}

    if not isinstance(data, dict):
        _log.error(
            "Thumbnail chunk %d/%d: expected a JSON object, got %s",
            chunk_num, total_chunks, type(data).__name__,
        )
        return {}

    items = data.get("items")
    found: dict[str, str] = {}
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        snippet = item.get("snippet")
        thumbs = snippet.get("thumbnails") if isinstance(snippet, dict) else None
        if "id" in item and isinstance(thumbs, dict) and thumbs:
            found[str(item["id"])] = best_thumbnail_url(thumbs)
    return found


async def fetch_thumbnails(
    video_ids: Sequence[str],
    api_key: str,
    client: httpx.AsyncClient | None = None,
) -> dict[str, str]:
    """Map each video ID the API knows about to its best thumbnail URL."""
    chunks = chunk_ids(video_ids)
    if not chunks:
        return {}

    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=settings.thumbnail_timeout_seconds)

    try:
        partials = await asyncio.gather(
            *(
                _fetch_chunk(client, chunk, api_key, num, len(chunks))
                for num, chunk in enumerate(chunks, 1)
            )
        )
    finally:
        if own_client:
            await client.aclose()

    thumbnails: dict[str, str] = {}
    for partial in partials:
        thumbnails.update(partial)

    _log.info("Resolved %d/%d thumbnails", len(thumbnails), len(video_ids))
    return thumbnails
