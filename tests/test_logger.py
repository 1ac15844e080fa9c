"""Tests for the JSON-lines detection audit log."""

from __future__ import annotations

import json

from titlelang import logger
from titlelang.config import settings


def test_log_detection_writes_one_json_line_per_call(tmp_path, monkeypatch):
    log_path = tmp_path / "audit" / "detections.log"
    monkeypatch.setattr(settings, "log_path", str(log_path))

    logger.log_detection("langdetect", "en", "high", 0.987654, 24)
    logger.log_detection("heuristic", "ru", "high", 0.9, 19, fallback_reason="DetectorCallFailed")

    lines = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    assert len(lines) == 2
    assert lines[0]["backend"] == "langdetect"
    assert lines[0]["detection_score"] == 0.9877
    assert lines[0]["fallback_reason"] is None
    assert lines[1]["fallback_reason"] == "DetectorCallFailed"
    assert "timestamp" in lines[1]


def test_each_log_path_gets_its_own_file(tmp_path, monkeypatch):
    first, second = tmp_path / "one.log", tmp_path / "two.log"

    monkeypatch.setattr(settings, "log_path", str(first))
    logger.log_detection("langdetect", "en", "low", 0.1, 4)
    monkeypatch.setattr(settings, "log_path", str(second))
    logger.log_detection("langdetect", "fr", "low", 0.2, 5)

    assert '"language": "en"' in first.read_text(encoding="utf-8")
    assert '"language": "fr"' not in first.read_text(encoding="utf-8")
    assert '"language": "fr"' in second.read_text(encoding="utf-8")
