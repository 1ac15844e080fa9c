"""Shared fixtures.

Environment is pinned before ``titlelang`` is imported anywhere so the
settings singleton never picks up a developer's ``.env``.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from typing import Callable

# Force the bundled langdetect backend and a throwaway audit log
os.environ["DETECTOR_BACKEND"] = "langdetect"
os.environ["LOG_PATH"] = os.path.join(tempfile.mkdtemp(prefix="titlelang-"), "detections.log")
os.environ["YOUTUBE_API_KEY"] = ""
os.environ["GOOGLE_API_KEY"] = ""

import pytest

from titlelang.exceptions import DetectorCallFailed, DetectorUnavailable
from titlelang.pipeline.detectors import LazyDetector, RawDetection
from titlelang.pipeline.orchestrator import DetectionService


class FakeDetector:
    """Stand-in primary detector.

    ``answers`` maps a substring of the cleaned title to either a
    ``(code, score)`` pair or an exception instance; ``default`` is used when
    nothing matches.
    """

    def __init__(
        self,
        name: str = "langdetect",
        answers: dict[str, object] | None = None,
        default: object = ("en", 0.95),
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.answers = answers or {}
        self.default = default
        self.delay = delay
        self.calls: list[str] = []

    async def detect(self, text: str) -> RawDetection:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        answer = self.default
        for key, value in self.answers.items():
            if key in text:
                answer = value
                break
        if isinstance(answer, Exception):
            raise answer
        code, score = answer
        return RawDetection(language_code=code, raw_score=score)


class CountingFactory:
    """Async detector factory that records how often it was invoked."""

    def __init__(self, detector: FakeDetector | None = None, error: Exception | None = None):
        self.detector = detector
        self.error = error
        self.calls = 0

    async def __call__(self) -> FakeDetector:
        self.calls += 1
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.detector


@pytest.fixture
def fake_detector_cls() -> type[FakeDetector]:
    return FakeDetector


@pytest.fixture
def counting_factory_cls() -> type[CountingFactory]:
    return CountingFactory


@pytest.fixture
def make_service() -> Callable[..., tuple[DetectionService, CountingFactory]]:
    """Build a ``DetectionService`` around a fake (or failing) detector."""

    def _make(
        detector: FakeDetector | None = None,
        unavailable: bool = False,
        timeout: float | None = 1.0,
        batch_concurrency: int = 1,
    ) -> tuple[DetectionService, CountingFactory]:
        detector = detector or FakeDetector()
        error = DetectorUnavailable("model missing", backend=detector.name) if unavailable else None
        factory = CountingFactory(detector, error)
        service = DetectionService(
            LazyDetector(detector.name, factory),
            timeout=timeout,
            batch_concurrency=batch_concurrency,
        )
        return service, factory

    return _make


@pytest.fixture
def call_failed() -> DetectorCallFailed:
    return DetectorCallFailed("backend exploded", backend="langdetect")
