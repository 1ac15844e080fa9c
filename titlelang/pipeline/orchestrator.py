"""Pipeline orchestrator – turns raw titles into ``DetectionResult`` records.

Per title:

Stage 0: normalise; too-short input → undetermined result, no detector call.
Stage 1: primary detector (with timeout).
Stage 2: on any primary failure → script heuristic on the cleaned text.
Stage 3: confidence tier from the backend's threshold rule.

None of the public entry points raise for a bad title or a broken backend;
the worst case is the undetermined result.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from functools import lru_cache
from typing import Iterable, Sequence

from titlelang.config import Settings, settings as default_settings
from titlelang.exceptions import DetectionError, DetectorCallFailed, InputTooShort
from titlelang.logger import log_detection
from titlelang.models import (
    UNDETERMINED_RESULT,
    BatchStatistics,
    ConfidenceTier,
    DetectionResult,
    FilterResponse,
    FilterStatistics,
    VideoRecord,
)
from titlelang.pipeline.confidence import classify_confidence, rule_for
from titlelang.pipeline.detectors import LazyDetector, detector_factory
from titlelang.pipeline.heuristic import classify_by_script
from titlelang.pipeline.normalizer import ensure_classifiable, normalize_title

_log = logging.getLogger("titlelang.orchestrator")

HEURISTIC = "heuristic"


class DetectionService:
    """Language detection over one process-wide primary detector."""

    def __init__(
        self,
        detector: LazyDetector,
        timeout: float | None = None,
        batch_concurrency: int = 1,
    ) -> None:
        # Fail at construction, not mid-batch, if the backend has no rule
        rule_for(detector.backend)
        self.detector = detector
        self.timeout = timeout
        self.batch_concurrency = max(1, batch_concurrency)

    @classmethod
    def from_settings(
        cls, settings: Settings, backend: str | None = None
    ) -> "DetectionService":
        backend = backend or settings.detector_backend
        return cls(
            LazyDetector(backend, detector_factory(settings, backend)),
            timeout=settings.detector_timeout_seconds,
            batch_concurrency=settings.batch_concurrency,
        )

    @property
    def backend(self) -> str:
        return self.detector.backend

    # ── Single title ──────────────────────────────────────────────────────

    async def detect_title_language(self, title: str) -> DetectionResult:
        """Detect the language of one title.  Never raises."""
        cleaned = normalize_title(title)

        try:
            ensure_classifiable(cleaned)
        except InputTooShort:
            self._record(UNDETERMINED_RESULT, "none", len(cleaned), "input_too_short")
            return UNDETERMINED_RESULT

        try:
            result = await self._detect_primary(cleaned)
        except DetectionError as exc:
            _log.debug("Primary detector failed (%s): %s", type(exc).__name__, exc)
            result = classify_by_script(cleaned)
            self._record(result, HEURISTIC, len(cleaned), type(exc).__name__)
            return result

        self._record(result, self.backend, len(cleaned), None)
        return result

    async def _detect_primary(self, cleaned: str) -> DetectionResult:
        detector = await self.detector.get()
        try:
            raw = await asyncio.wait_for(detector.detect(cleaned), self.timeout)
        except asyncio.TimeoutError as exc:
            raise DetectorCallFailed(
                f"no answer within {self.timeout}s", backend=self.backend
            ) from exc
        except DetectionError:
            raise
        except Exception as exc:
            _log.exception("Detector '%s' raised outside the error taxonomy", self.backend)
            raise DetectorCallFailed(str(exc), backend=self.backend) from exc

        tier = classify_confidence(raw.raw_score, len(cleaned), self.backend)
        return DetectionResult(
            language=raw.language_code,
            confidence=tier,
            detection_score=raw.raw_score,
        )

    def _record(
        self,
        result: DetectionResult,
        backend: str,
        text_length: int,
        fallback_reason: str | None,
    ) -> None:
        try:
            log_detection(
                backend=backend,
                language=result.language,
                confidence=result.confidence.value,
                detection_score=result.detection_score,
                text_length=text_length,
                fallback_reason=fallback_reason,
            )
        except OSError as exc:
            _log.warning("Could not write detection log: %s", exc)

    # ── Batch ─────────────────────────────────────────────────────────────

    async def warm_up(self) -> bool:
        """Build the primary detector now; ``False`` if it is unavailable."""
        try:
            await self.detector.get()
        except DetectionError:
            return False
        return True

    async def detect_languages_batch(self, titles: Sequence[str]) -> list[DetectionResult]:
        """Detect every title; output matches the input's length and order."""
        await self.warm_up()

        if self.batch_concurrency == 1:
            results: list[DetectionResult] = []
            for title in titles:
                results.append(await self.detect_title_language(title))
        else:
            semaphore = asyncio.Semaphore(self.batch_concurrency)

            async def _bounded(title: str) -> DetectionResult:
                async with semaphore:
                    return await self.detect_title_language(title)

            results = list(await asyncio.gather(*(_bounded(t) for t in titles)))

        _log.info(
            "Detected %d titles (backend=%s, primary_loaded=%s)",
            len(results), self.backend, self.detector.loaded,
        )
        return results

    # ── Filtering ─────────────────────────────────────────────────────────

    async def filter_by_language(
        self, videos: Sequence[VideoRecord], language: str = "en"
    ) -> FilterResponse:
        """Split *videos* into those whose title is in *language* and the rest."""
        results = await self.detect_languages_batch([v.title for v in videos])

        kept: list[VideoRecord] = []
        filtered_out: list[VideoRecord] = []
        for video, result in zip(videos, results):
            if result.language == language:
                kept.append(video)
            else:
                filtered_out.append(video)

        original = len(videos)
        return FilterResponse(
            kept=kept,
            filtered_out=filtered_out,
            statistics=FilterStatistics(
                original=original,
                kept=len(kept),
                filtered=len(filtered_out),
                percentage_kept=round(len(kept) / original * 100) if original else 100,
            ),
        )

    async def close(self) -> None:
        if self.detector.loaded:
            aclose = getattr(await self.detector.get(), "aclose", None)
            if aclose is not None:
                await aclose()
        self.detector.reset()


# ── Statistics ────────────────────────────────────────────────────────────

def get_language_statistics(results: Iterable[DetectionResult]) -> BatchStatistics:
    """Count results by language and by confidence tier (all tiers present)."""
    by_language: Counter[str] = Counter()
    by_confidence = {tier: 0 for tier in ConfidenceTier}
    total = 0

    for result in results:
        total += 1
        by_language[result.language] += 1
        by_confidence[result.confidence] += 1

    return BatchStatistics(
        total=total,
        by_language=dict(by_language),
        by_confidence=by_confidence,
    )


# ── Process-wide service ──────────────────────────────────────────────────

@lru_cache
def get_detection_service() -> DetectionService:
    """Get the cached, settings-driven detection service."""
    return DetectionService.from_settings(default_settings)
