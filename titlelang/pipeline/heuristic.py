"""Script-block heuristic classifier.

Last-resort detector used whenever the primary backend is unavailable or
fails.  It looks only at which Unicode blocks the characters fall in, so it
needs no model, no network and cannot fail.  It trades recall for that:
Latin-script titles are left undetermined.

Checks run in a fixed order and the first one over the ratio threshold
wins; there is no scoring across scripts.
"""

from __future__ import annotations

import re

from titlelang.models import (
    UNDETERMINED_RESULT,
    ConfidenceTier,
    DetectionResult,
)

SCRIPT_RATIO_THRESHOLD = 0.3

_CYRILLIC = re.compile("[\u0400-\u04FF]")
_CJK = re.compile("[\u4E00-\u9FFF\u3040-\u309F\u30A0-\u30FF]")
_KANA = re.compile("[\u3040-\u309F\u30A0-\u30FF]")
_ARABIC = re.compile("[\u0600-\u06FF\u0750-\u077F]")


def _ratio(pattern: re.Pattern[str], text: str) -> float:
    if not text:
        return 0.0
    return len(pattern.findall(text)) / len(text)


def classify_by_script(text: str) -> DetectionResult:
    """Classify *text* by dominant script.

    1. Cyrillic  → ``ru`` / high / 0.9
    2. CJK       → ``ja`` / high / 0.9 when any kana is present,
                   otherwise ``zh`` / medium / 0.7
    3. Arabic    → ``ar`` / high / 0.9
    4. anything else → the undetermined result
    """
    if _ratio(_CYRILLIC, text) > SCRIPT_RATIO_THRESHOLD:
        return DetectionResult(
            language="ru", confidence=ConfidenceTier.HIGH, detection_score=0.9
        )

    if _ratio(_CJK, text) > SCRIPT_RATIO_THRESHOLD:
        if _KANA.search(text):
            return DetectionResult(
                language="ja", confidence=ConfidenceTier.HIGH, detection_score=0.9
            )
        return DetectionResult(
            language="zh", confidence=ConfidenceTier.MEDIUM, detection_score=0.7
        )

    if _ratio(_ARABIC, text) > SCRIPT_RATIO_THRESHOLD:
        return DetectionResult(
            language="ar", confidence=ConfidenceTier.HIGH, detection_score=0.9
        )

    return UNDETERMINED_RESULT
