"""Structured JSON audit log for detection results.

Each detection becomes one JSON line in ``LOG_PATH``.  Only the outcome and
the cleaned title's length are recorded; the title itself never is.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path

from titlelang.config import settings


class DetectionLineFormatter(logging.Formatter):
    """Render the ``detection`` extra of a record as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        fields = getattr(record, "detection", {})
        line = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            **fields,
        }
        return json.dumps(line, ensure_ascii=False)


@lru_cache(maxsize=None)
def audit_logger(log_path: str) -> logging.Logger:
    """File logger for *log_path*, created on first use."""
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(DetectionLineFormatter())

    # One logger per file so a changed LOG_PATH never writes to the old one
    logger = logging.getLogger(f"titlelang.audit.{path.resolve()}")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(handler)
    return logger


def log_detection(
    backend: str,
    language: str,
    confidence: str,
    detection_score: float,
    text_length: int,
    fallback_reason: str | None = None,
) -> None:
    audit_logger(settings.log_path).info(
        "detection",
        extra={
            "detection": {
                "backend": backend,
                "language": language,
                "confidence": confidence,
                "detection_score": round(detection_score, 4),
                "text_length": text_length,
                "fallback_reason": fallback_reason,
            }
        },
    )
