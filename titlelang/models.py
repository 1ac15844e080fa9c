"""Pydantic v2 records exchanged with callers of the title-language service.

Field names are snake_case in Python and camelCase on the wire
(``detectionScore``, ``byLanguage``, ``videoIds`` ...).  Either spelling is
accepted on input.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNDETERMINED_LANGUAGE = "??"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Detection ───────────────────────────────────────────────────────────────

class ConfidenceTier(str, Enum):
    """Ordinal reliability tier: ``low < medium < high``."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {
    ConfidenceTier.LOW: 0,
    ConfidenceTier.MEDIUM: 1,
    ConfidenceTier.HIGH: 2,
}


class DetectionResult(_WireModel):
    """Language verdict for one title."""

    model_config = ConfigDict(frozen=True)

    language: str = Field(..., min_length=2, max_length=2)
    confidence: ConfidenceTier
    detection_score: float = Field(..., ge=0.0, le=1.0)

    @field_validator("language")
    @classmethod
    def _two_letter_or_sentinel(cls, value: str) -> str:
        if value == UNDETERMINED_LANGUAGE:
            return value
        if not (value.isascii() and value.isalpha() and value.islower()):
            raise ValueError(f"not a two-letter language code: {value!r}")
        return value

    @property
    def is_undetermined(self) -> bool:
        return self.language == UNDETERMINED_LANGUAGE


UNDETERMINED_RESULT = DetectionResult(
    language=UNDETERMINED_LANGUAGE,
    confidence=ConfidenceTier.LOW,
    detection_score=0.0,
)


class BatchStatistics(_WireModel):
    """Read-only aggregate over a sequence of ``DetectionResult``."""

    model_config = ConfigDict(frozen=True)

    total: int
    by_language: dict[str, int]
    by_confidence: dict[ConfidenceTier, int]


# ── Request / response bodies ───────────────────────────────────────────────

class DetectRequest(_WireModel):
    title: str


class BatchDetectRequest(_WireModel):
    titles: list[str]


class BatchDetectResponse(_WireModel):
    results: list[DetectionResult]
    statistics: BatchStatistics


class StatisticsRequest(_WireModel):
    results: list[DetectionResult]


class VideoRecord(_WireModel):
    """A video row; anything besides ``title`` is carried through untouched."""

    model_config = ConfigDict(extra="allow")

    title: str


class FilterRequest(_WireModel):
    videos: list[VideoRecord]
    language: str = Field(default="en", min_length=2, max_length=2)


class FilterStatistics(_WireModel):
    original: int
    kept: int
    filtered: int
    percentage_kept: int


class FilterResponse(_WireModel):
    kept: list[VideoRecord]
    filtered_out: list[VideoRecord]
    statistics: FilterStatistics


class ThumbnailRequest(_WireModel):
    """Both fields are optional here so the endpoint can answer with its own
    400 body instead of a validation error."""

    video_ids: list[str] | None = None
    api_key: str | None = None


class ThumbnailResponse(_WireModel):
    thumbnails: dict[str, str]


# ── Health ──────────────────────────────────────────────────────────────────

class HealthResponse(_WireModel):
    """Response from /health endpoint."""

    status: str
    backend: str
    detector_loaded: bool
    uptime_seconds: float


def dump(model: BaseModel) -> dict[str, Any]:
    """JSON-ready dict using wire (camelCase) names."""
    return model.model_dump(mode="json", by_alias=True)
