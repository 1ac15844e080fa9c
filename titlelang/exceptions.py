"""Error taxonomy for the detection pipeline.

None of these escape ``DetectionService``: the orchestrator turns every one
of them into a heuristic fallback (or, for ``InputTooShort``, the
undetermined result).

    DetectionError
    ├── InputTooShort
    ├── DetectorUnavailable
    └── DetectorCallFailed
        ├── DetectorEmptyResult
        └── MalformedBackendResponse
"""

from __future__ import annotations


class DetectionError(Exception):
    """Base class for every detection-pipeline failure."""

    def __init__(self, message: str, backend: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend


class InputTooShort(DetectionError):
    """Cleaned title is below the minimum classifiable length."""


class DetectorUnavailable(DetectionError):
    """Backend could not be initialised (missing model, library or key)."""


class DetectorCallFailed(DetectionError):
    """A single detection call failed (network, timeout, bad payload)."""


class DetectorEmptyResult(DetectorCallFailed):
    """Backend answered but produced no prediction."""


class MalformedBackendResponse(DetectorCallFailed):
    """Backend returned a language code outside the two-letter contract."""
