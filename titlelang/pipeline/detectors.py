"""Stage 1 – Primary language detectors.

Three interchangeable backends share one structural interface
(``LanguageDetector``):

* **fasttext** – the ``lid.176.bin`` model loaded from
  ``FASTTEXT_MODEL_PATH``.
* **langdetect** – the profiles bundled with the ``langdetect`` package.
* **google** – the Google Cloud Translation v2 ``detect`` endpoint at
  ``GOOGLE_DETECT_URL``.

Every adapter returns a ``RawDetection`` with a two-letter code and a score
already scaled to ``[0, 1]``, and translates backend exceptions into the
``titlelang.exceptions`` taxonomy.  The backend in use is picked by
``DETECTOR_BACKEND``; ``LazyDetector`` builds it at most once per process.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

import httpx
from langdetect import DetectorFactory, LangDetectException, detect_langs
from langdetect.detector_factory import init_factory

from titlelang.config import Settings
from titlelang.exceptions import (
    DetectorCallFailed,
    DetectorEmptyResult,
    DetectorUnavailable,
    MalformedBackendResponse,
)

_log = logging.getLogger("titlelang.detectors")

_TWO_LETTER = re.compile(r"^[a-z]{2}$")
_SUBTAG_SPLIT = re.compile(r"[-_]")


# ── Contract ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RawDetection:
    language_code: str
    raw_score: float


class LanguageDetector(Protocol):
    name: str

    async def detect(self, text: str) -> RawDetection: ...


def normalize_code(code: str, backend: str) -> str:
    """Reduce a backend label to its two-letter primary subtag.

    ``"__label__en"`` → ``"en"``, ``"zh-CN"`` → ``"zh"``.  Anything that is
    not two ASCII letters afterwards (``"und"``, ``"ceb"``) is rejected.
    """
    primary = code.strip().lower().replace("__label__", "")
    primary = _SUBTAG_SPLIT.split(primary, maxsplit=1)[0]
    if not _TWO_LETTER.match(primary):
        raise MalformedBackendResponse(
            f"language code {code!r} is not ISO 639-1", backend=backend
        )
    return primary


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, score))


# ── fastText ───────────────────────────────────────────────────────────────

class FastTextDetector:
    """fastText ``lid.176`` model held in memory."""

    name = "fasttext"

    def __init__(self, model: Any) -> None:
        self._model = model

    @classmethod
    async def load(cls, model_path: str) -> "FastTextDetector":
        path = Path(model_path)
        if not path.is_file():
            raise DetectorUnavailable(
                f"fastText model not found at {path}", backend=cls.name
            )
        try:
            import fasttext  # heavy import – deferred
        except ImportError as exc:
            raise DetectorUnavailable(
                "fasttext is not installed", backend=cls.name
            ) from exc

        try:
            model = await asyncio.to_thread(fasttext.load_model, str(path))
        except Exception as exc:
            raise DetectorUnavailable(
                f"could not load fastText model: {exc}", backend=cls.name
            ) from exc

        _log.info("Loaded fastText model from %s", path)
        return cls(model)

    async def detect(self, text: str) -> RawDetection:
        # predict() rejects newlines
        single_line = text.replace("\n", " ")
        try:
            labels, probs = await asyncio.to_thread(self._model.predict, single_line, k=1)
        except Exception as exc:
            raise DetectorCallFailed(
                f"fastText prediction failed: {exc}", backend=self.name
            ) from exc

        if len(labels) == 0:
            raise DetectorEmptyResult("fastText returned no label", backend=self.name)

        return RawDetection(
            language_code=normalize_code(labels[0], self.name),
            raw_score=_clamp(float(probs[0])),
        )


# ── langdetect ─────────────────────────────────────────────────────────────

class LangDetectDetector:
    """Naive-Bayes detector shipped with the ``langdetect`` package."""

    name = "langdetect"

    @classmethod
    async def load(cls) -> "LangDetectDetector":
        # Fixed seed, otherwise langdetect answers differently run to run
        DetectorFactory.seed = 0
        try:
            await asyncio.to_thread(init_factory)
        except Exception as exc:
            raise DetectorUnavailable(
                f"could not load langdetect profiles: {exc}", backend=cls.name
            ) from exc
        return cls()

    async def detect(self, text: str) -> RawDetection:
        try:
            candidates = await asyncio.to_thread(detect_langs, text)
        except LangDetectException as exc:
            raise DetectorEmptyResult(str(exc), backend=self.name) from exc
        except Exception as exc:
            raise DetectorCallFailed(
                f"langdetect failed: {exc}", backend=self.name
            ) from exc

        if not candidates:
            raise DetectorEmptyResult("langdetect returned no candidates", backend=self.name)

        top = candidates[0]
        return RawDetection(
            language_code=normalize_code(top.lang, self.name),
            raw_score=_clamp(float(top.prob)),
        )


# ── Google Cloud Translation ───────────────────────────────────────────────

class GoogleTranslateDetector:
    """Remote detection through the Translation v2 ``detect`` method."""

    name = "google"

    def __init__(self, client: httpx.AsyncClient, url: str, api_key: str) -> None:
        self._client = client
        self._url = url
        self._api_key = api_key

    @classmethod
    async def load(
        cls,
        api_key: str,
        url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GoogleTranslateDetector":
        if not api_key:
            raise DetectorUnavailable("GOOGLE_API_KEY is not set", backend=cls.name)
        client = httpx.AsyncClient(timeout=timeout, transport=transport)
        return cls(client, url, api_key)

    async def detect(self, text: str) -> RawDetection:
        try:
            resp = await self._client.post(
                self._url,
                params={"key": self._api_key},
                json={"q": text},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DetectorCallFailed(
                f"Google detect request failed: {exc}", backend=self.name
            ) from exc

        # {"data": {"detections": [[{"language": "en", "confidence": 0.98}, ...]]}}
        try:
            candidates = data["data"]["detections"][0]
        except (KeyError, IndexError, TypeError) as exc:
            raise DetectorEmptyResult(
                "Google detect returned no detections", backend=self.name
            ) from exc
        if not candidates:
            raise DetectorEmptyResult(
                "Google detect returned no detections", backend=self.name
            )

        try:
            scored = [(float(c.get("confidence", 0.0)), c) for c in candidates]
            score, best = max(scored, key=lambda pair: pair[0])
            code = str(best.get("language", ""))
        except (AttributeError, TypeError, ValueError) as exc:
            raise MalformedBackendResponse(
                f"unexpected Google detection candidate: {exc}", backend=self.name
            ) from exc

        return RawDetection(
            language_code=normalize_code(code, self.name),
            raw_score=_clamp(score),
        )

    async def aclose(self) -> None:
        await self._client.aclose()


# ── Backend selection ──────────────────────────────────────────────────────

DetectorFactoryFn = Callable[[], Awaitable[LanguageDetector]]

_BACKENDS: dict[str, Callable[[Settings], DetectorFactoryFn]] = {
    "fasttext": lambda s: lambda: FastTextDetector.load(s.fasttext_model_path),
    "langdetect": lambda s: LangDetectDetector.load,
    "google": lambda s: lambda: GoogleTranslateDetector.load(
        s.google_api_key, s.google_detect_url, s.detector_timeout_seconds
    ),
}


def available_backends() -> list[str]:
    return sorted(_BACKENDS)


def detector_factory(settings: Settings, backend: str | None = None) -> DetectorFactoryFn:
    """Return a zero-argument coroutine factory for the configured backend."""
    backend = backend or settings.detector_backend
    try:
        return _BACKENDS[backend](settings)
    except KeyError:
        raise ValueError(
            f"unknown detector backend {backend!r}; "
            f"expected one of {', '.join(available_backends())}"
        ) from None


# ── Process-wide handle ────────────────────────────────────────────────────

class LazyDetector:
    """At-most-once construction of the primary detector.

    The first caller builds the detector; concurrent first callers wait on
    the same lock and reuse the result.  The lock is only held while
    building.  A failed build is remembered and every later ``get()``
    raises ``DetectorUnavailable`` without trying again.
    """

    def __init__(self, backend: str, factory: DetectorFactoryFn) -> None:
        self.backend = backend
        self._factory = factory
        self._detector: LanguageDetector | None = None
        self._failure: DetectorUnavailable | None = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._detector is not None

    async def get(self) -> LanguageDetector:
        if self._detector is not None:
            return self._detector

        if self._failure is None:
            async with self._lock:
                if self._detector is None and self._failure is None:
                    await self._build()

        if self._failure is not None:
            raise self._failure
        return self._detector

    async def _build(self) -> None:
        try:
            self._detector = await self._factory()
            _log.info("Primary detector '%s' ready", self.backend)
        except DetectorUnavailable as exc:
            self._failure = exc
        except Exception as exc:
            self._failure = DetectorUnavailable(str(exc), backend=self.backend)
        if self._failure is not None:
            _log.warning(
                "Primary detector '%s' unavailable, using script heuristic: %s",
                self.backend, self._failure,
            )

    def reset(self) -> None:
        """Forget the built detector (or the remembered failure)."""
        self._detector = None
        self._failure = None
