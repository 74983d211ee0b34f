"""Document language detection backed by langdetect.

Detection only ever picks one of the languages the correction service
understands. Anything else, and anything detected with low confidence,
falls back to the configured language.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

logger = logging.getLogger(__name__)

# langdetect is randomized; a fixed seed makes repeated checks agree.
DetectorFactory.seed = 0

SUPPORTED_LANGUAGES: frozenset[str] = frozenset({"en", "de", "ru", "uk"})
CONFIDENCE_THRESHOLD = 0.7
MIN_SAMPLE_LENGTH = 10
MAX_SAMPLES = 5
UNSUPPORTED_CONFIDENCE = 0.5

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

Candidates = Callable[[str], Sequence[tuple[str, float]]]


def langdetect_candidates(text: str) -> list[tuple[str, float]]:
    """Ranked ``(code, probability)`` pairs from langdetect, best first."""
    return [(lang.lang, lang.prob) for lang in detect_langs(text)]


@dataclass(frozen=True, slots=True)
class LanguageDetectionResult:
    """Outcome of detecting a document's language.

    Args:
        language: Short code to check with (always a supported language).
        confidence: Detector probability for ``language``; 0 when it fell back
            without a usable detection.
        is_supported: False when the detector found a language the service
            does not support.
    """

    language: str
    confidence: float
    is_supported: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "confidence": round(self.confidence, 3),
            "is_supported": self.is_supported,
        }


def extract_text_samples(text: str, max_samples: int = MAX_SAMPLES) -> list[str]:
    """Pick up to ``max_samples`` paragraphs spread evenly over ``text``."""
    if not text.strip():
        return []
    paragraphs = [p for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
    if len(paragraphs) <= max_samples:
        return paragraphs
    step = len(paragraphs) // max_samples
    return [paragraphs[min(i * step, len(paragraphs) - 1)] for i in range(max_samples)]


class LanguageDetector:
    """Detect which supported language a text is written in.

    Args:
        threshold: Minimum confidence for a sample-based detection to win
            over the fallback.
        candidates: Function returning ranked ``(code, probability)`` pairs.
            Defaults to langdetect.
    """

    def __init__(
        self,
        threshold: float = CONFIDENCE_THRESHOLD,
        candidates: Candidates | None = None,
    ) -> None:
        self._threshold = threshold
        self._candidates = candidates or langdetect_candidates

    def detect(self, text: str, fallback: str = "en") -> LanguageDetectionResult:
        """Detect the language of one piece of text."""
        if len(text.strip()) < MIN_SAMPLE_LENGTH:
            return LanguageDetectionResult(fallback, 0.0)

        try:
            ranked = self._candidates(text)
        except LangDetectException as exc:
            logger.debug("Language detection failed: %s", exc)
            return LanguageDetectionResult(fallback, 0.0)
        if not ranked:
            return LanguageDetectionResult(fallback, 0.0)

        code, probability = ranked[0]
        code = code.lower()
        if code in SUPPORTED_LANGUAGES:
            return LanguageDetectionResult(code, probability)

        logger.debug("Detected unsupported language %r, using %s", code, fallback)
        return LanguageDetectionResult(fallback, UNSUPPORTED_CONFIDENCE, is_supported=False)

    def detect_from_samples(
        self, samples: Sequence[str], fallback: str = "en"
    ) -> LanguageDetectionResult:
        """Return the most confident detection across samples.

        Samples shorter than ten characters are ignored. When the best
        confidence is below the threshold the fallback wins, keeping
        that confidence.
        """
        results = [
            self.detect(sample, fallback)
            for sample in samples
            if len(sample.strip()) >= MIN_SAMPLE_LENGTH
        ]
        if not results:
            return LanguageDetectionResult(fallback, 0.0)

        best = max(results, key=lambda r: r.confidence)
        if best.confidence < self._threshold:
            return LanguageDetectionResult(fallback, best.confidence)
        return best

    def detect_document(self, text: str, fallback: str = "en") -> LanguageDetectionResult:
        """Sample ``text`` by paragraph and detect from those samples."""
        result = self.detect_from_samples(extract_text_samples(text), fallback)
        logger.debug(
            "Detected language %s (confidence %.2f)", result.language, result.confidence
        )
        return result
