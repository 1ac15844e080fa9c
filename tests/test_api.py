"""Integration tests for the HTTP endpoints.

The process-wide detection service is swapped for one built around
``FakeDetector`` so no model is loaded, and thumbnail fetching is mocked so
no request leaves the machine.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from titlelang.main import app

client = TestClient(app)


@pytest.fixture
def service(make_service, fake_detector_cls):
    detector = fake_detector_cls(
        answers={"Hola": ("es", 0.92)},
        default=("en", 0.97),
    )
    svc, _ = make_service(detector)
    with patch("titlelang.main.get_detection_service", return_value=svc):
        yield svc


# ── Detection ───────────────────────────────────────────────────────────────

def test_detect_single_title(service):
    response = client.post("/detect", json={"title": "How to start a YouTube channel in 2024"})
    assert response.status_code == 200
    assert response.json() == {"language": "en", "confidence": "high", "detectionScore": 0.97}


def test_detect_short_title_returns_sentinel(service):
    response = client.post("/detect", json={"title": "ab"})
    assert response.status_code == 200
    assert response.json() == {"language": "??", "confidence": "low", "detectionScore": 0.0}


def test_detect_batch_returns_results_and_statistics(service):
    titles = ["Hola mundo, esto es una prueba", "ab", "Minecraft but every time I die"]
    response = client.post("/detect/batch", json={"titles": titles})
    assert response.status_code == 200

    data = response.json()
    assert [r["language"] for r in data["results"]] == ["es", "??", "en"]
    assert data["statistics"]["total"] == 3
    assert data["statistics"]["byLanguage"] == {"es": 1, "??": 1, "en": 1}
    assert data["statistics"]["byConfidence"] == {"low": 1, "medium": 0, "high": 2}


def test_statistics_endpoint_accepts_wire_names():
    payload = {
        "results": [
            {"language": "en", "confidence": "high", "detectionScore": 0.9},
            {"language": "en", "confidence": "low", "detectionScore": 0.2},
        ]
    }
    response = client.post("/statistics", json=payload)
    assert response.status_code == 200
    assert response.json() == {
        "total": 2,
        "byLanguage": {"en": 2},
        "byConfidence": {"low": 1, "medium": 0, "high": 1},
    }


def test_statistics_rejects_bad_language_code():
    payload = {"results": [{"language": "eng", "confidence": "high", "detectionScore": 0.9}]}
    assert client.post("/statistics", json=payload).status_code == 422


def test_filter_endpoint_keeps_extra_fields(service):
    payload = {
        "language": "en",
        "videos": [
            {"title": "Unboxing PlayStation 5", "video_id": "abc"},
            {"title": "Hola mundo amigos", "video_id": "def"},
        ],
    }
    response = client.post("/filter", json=payload)
    assert response.status_code == 200

    data = response.json()
    assert data["kept"] == [{"title": "Unboxing PlayStation 5", "video_id": "abc"}]
    assert data["filteredOut"][0]["video_id"] == "def"
    assert data["statistics"] == {"original": 2, "kept": 1, "filtered": 1, "percentageKept": 50}


# ── Thumbnails ──────────────────────────────────────────────────────────────

def test_thumbnails_requires_video_ids():
    response = client.post("/youtube-thumbnails", json={"videoIds": [], "apiKey": "k"})
    assert response.status_code == 400
    assert response.json() == {"error": "Video IDs array is required"}

    response = client.post("/youtube-thumbnails", json={"apiKey": "k"})
    assert response.status_code == 400


def test_thumbnails_requires_api_key():
    response = client.post("/youtube-thumbnails", json={"videoIds": ["a"]})
    assert response.status_code == 400
    assert response.json() == {"error": "YouTube API key is required"}


@patch("titlelang.main.fetch_thumbnails", new_callable=AsyncMock)
def test_thumbnails_success(mock_fetch: AsyncMock):
    mock_fetch.return_value = {"a": "https://i.ytimg.com/vi/a/high.jpg"}
    response = client.post("/youtube-thumbnails", json={"videoIds": ["a", "b"], "apiKey": "k"})

    assert response.status_code == 200
    assert response.json() == {"thumbnails": {"a": "https://i.ytimg.com/vi/a/high.jpg"}}
    mock_fetch.assert_awaited_once_with(["a", "b"], "k")


@patch("titlelang.main.fetch_thumbnails", new_callable=AsyncMock)
def test_thumbnails_unexpected_failure_is_500(mock_fetch: AsyncMock):
    mock_fetch.side_effect = RuntimeError("event loop on fire")
    response = client.post("/youtube-thumbnails", json={"videoIds": ["a"], "apiKey": "k"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to fetch thumbnails",
        "details": "event loop on fire",
    }


# ── Health ──────────────────────────────────────────────────────────────────

def test_health_endpoint(service):
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "ok"
    assert data["backend"] == "langdetect"
    assert isinstance(data["detectorLoaded"], bool)
    assert data["uptimeSeconds"] >= 0
