"""Confidence normalisation.

Backends disagree on what a score means.  A local statistical model will
happily report 0.95 for a four-letter string, while a cloud service already
discounts short input before it answers.  Each backend therefore gets its
own ``ThresholdRule``, looked up by backend name, and the orchestrator never
branches on backend identity itself.
"""

from __future__ import annotations

from dataclasses import dataclass

from titlelang.models import ConfidenceTier


@dataclass(frozen=True)
class ThresholdRule:
    """Score/length gates for one backend.

    ``high`` needs ``score > high_score`` and ``length > high_min_length``.
    ``medium`` needs ``score > medium_score`` (``>=`` when
    ``medium_inclusive``) and ``length > medium_min_length``.
    A ``None`` length gate is not checked.
    """

    high_score: float
    medium_score: float
    high_min_length: int | None = None
    medium_min_length: int | None = None
    medium_inclusive: bool = False

    def tier(self, score: float, length: int) -> ConfidenceTier:
        if score > self.high_score and _longer(length, self.high_min_length):
            return ConfidenceTier.HIGH

        medium_ok = (
            score >= self.medium_score
            if self.medium_inclusive
            else score > self.medium_score
        )
        if medium_ok and _longer(length, self.medium_min_length):
            return ConfidenceTier.MEDIUM

        return ConfidenceTier.LOW


def _longer(length: int, minimum: int | None) -> bool:
    return minimum is None or length > minimum


LOCAL_MODEL_RULE = ThresholdRule(
    high_score=0.8,
    medium_score=0.5,
    high_min_length=15,
    medium_min_length=5,
)

REMOTE_SERVICE_RULE = ThresholdRule(
    high_score=0.8,
    medium_score=0.5,
    medium_inclusive=True,
)

_RULES: dict[str, ThresholdRule] = {
    "fasttext": LOCAL_MODEL_RULE,
    "langdetect": LOCAL_MODEL_RULE,
    "google": REMOTE_SERVICE_RULE,
}


def register_rule(backend: str, rule: ThresholdRule) -> None:
    """Add or replace the rule used for *backend*."""
    _RULES[backend] = rule


def rule_for(backend: str) -> ThresholdRule:
    """Return the rule for *backend*; ``KeyError`` if none is registered."""
    try:
        return _RULES[backend]
    except KeyError:
        raise KeyError(f"no confidence rule registered for backend {backend!r}") from None


def classify_confidence(score: float, length: int, backend: str) -> ConfidenceTier:
    """Map a ``[0, 1]`` score and cleaned-text length to a confidence tier."""
    return rule_for(backend).tier(score, length)
