"""Check orchestration: extract, split, consult the cache, call the service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from gramark.cache import ResultCache
from gramark.config import GramarkConfig, read_token
from gramark.language import LanguageDetectionResult, LanguageDetector
from gramark.service.client import CorrectionClient
from gramark.service.errors import MalformedResponseError
from gramark.service.models import CorrectionRequest, Problem, SentenceWithProblems
from gramark.service.resolver import ConfigurationUrlResolver
from gramark.text.exclusions import ExclusionScanner
from gramark.text.extractor import extract_text_for_check
from gramark.text.sentences import SentenceSegmenter

if TYPE_CHECKING:
    from gramark.core.protocols import CorrectionBackend
    from gramark.text.models import ProcessedText

logger = logging.getLogger(__name__)

_LANGUAGE_CODES: dict[str, str] = {
    "en": "ENGLISH",
    "de": "GERMAN",
    "ru": "RUSSIAN",
    "uk": "UKRAINIAN",
}


class CheckerError(Exception):
    """Base exception for check orchestration failures."""


class CheckerNotInitializedError(CheckerError):
    """check_text was called before initialize()."""


class CheckLimitError(CheckerError):
    """Too many sentences or characters queued for one check.

    Attributes:
        sentence_count: Number of sentences in the rejected check.
        character_count: Total characters across those sentences.
    """

    def __init__(self, message: str, sentence_count: int, character_count: int) -> None:
        self.sentence_count = sentence_count
        self.character_count = character_count
        super().__init__(message)


def map_language_code(language: str) -> str:
    """Map a short language code to the service's language name (ENGLISH default)."""
    return _LANGUAGE_CODES.get(language.lower(), "ENGLISH")


@dataclass(frozen=True, slots=True)
class ProblemWithSentence:
    """A service problem tagged with the index of the sentence it came from."""

    problem: Problem
    sentence_index: int

    def to_dict(self) -> dict[str, Any]:
        return {"sentence_index": self.sentence_index, **self.problem.to_dict()}


@dataclass
class CheckResult:
    """Outcome of one check.

    Args:
        problems: Problems surviving the confidence filter, in sentence order.
        sentences: Sentences submitted for this check; indexes refer to this list.
        processed_text: Extraction result the sentences came from.
        language: Service language name used for the request.
        detection: Auto-detection outcome, when detection ran.
    """

    problems: list[ProblemWithSentence] = field(default_factory=list)
    sentences: list[str] = field(default_factory=list)
    processed_text: ProcessedText | None = None
    language: str = "ENGLISH"
    detection: LanguageDetectionResult | None = None

    @property
    def total_problems(self) -> int:
        return len(self.problems)

    @property
    def has_errors(self) -> bool:
        return bool(self.problems)

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "detection": self.detection.to_dict() if self.detection else None,
            "sentences": list(self.sentences),
            "total_problems": self.total_problems,
            "problems": [p.to_dict() for p in self.problems],
        }


class GrammarChecker:
    """Run documents through extraction, sentence splitting and correction.

    Usage::

        async with GrammarChecker(config) as checker:
            result = await checker.check_text(document)

    Args:
        config: Resolved configuration. Defaults to built-in defaults.
        backend: Correction backend to use. When None, ``initialize()``
            resolves the service URL and opens a CorrectionClient.
        resolver: URL resolver used when no backend was injected.
        detector: Language detector used when ``general.auto_detect_language``
            is on and no language is passed to ``check_text``.
    """

    def __init__(
        self,
        config: GramarkConfig | None = None,
        backend: CorrectionBackend | None = None,
        resolver: ConfigurationUrlResolver | None = None,
        detector: LanguageDetector | None = None,
    ) -> None:
        self._config = config or GramarkConfig()
        self._backend = backend
        self._resolver = resolver
        self._owned_client: CorrectionClient | None = None
        self._initialized = False
        self._cache: ResultCache[SentenceWithProblems] = ResultCache(
            self._config.checker.cache_size
        )
        self._scanner = ExclusionScanner(self._config.exclusions.enabled_kinds())
        self._segmenter = SentenceSegmenter()
        self._detector = detector or LanguageDetector()

    @property
    def cache(self) -> ResultCache[SentenceWithProblems]:
        return self._cache

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Prepare the backend.

        Raises:
            CheckerError: No backend was injected and no token is configured.
        """
        if self._initialized:
            return
        if self._backend is None:
            token = read_token(self._config)
            if token is None:
                raise CheckerError(
                    f"No service token; set the {self._config.service.token_env} "
                    "environment variable"
                )
            service = self._config.service
            resolver = self._resolver or ConfigurationUrlResolver(
                service.config_url, service.fallback_url
            )
            resolution = await resolver.resolve()
            if not resolution.is_success:
                logger.warning("Service URL resolution fell back to %s", resolution.url)
            client = CorrectionClient(
                resolution.url,
                token,
                user_auth=service.user_auth,
                timeout=service.timeout_seconds,
            )
            await client.__aenter__()
            self._owned_client = client
            self._backend = client
        self._initialized = True

    async def close(self) -> None:
        """Release the client opened by ``initialize()``, if any."""
        if self._owned_client is not None:
            await self._owned_client.__aexit__(None, None, None)
            self._backend = None
            self._owned_client = None
        self._initialized = False

    def split_sentences(self, document: str) -> tuple[ProcessedText, list[str]]:
        """Extract checkable text and split it, without calling the service."""
        processed = extract_text_for_check(document, self._scanner)
        return processed, self._segmenter.split(processed.extracted_text)

    def _enforce_limits(self, sentences: list[str]) -> None:
        limits = self._config.checker
        count = len(sentences)
        characters = sum(len(s) for s in sentences)
        if count > limits.max_sentences:
            raise CheckLimitError(
                f"Too many sentences to check at once: {count} (limit {limits.max_sentences})",
                count,
                characters,
            )
        if characters > limits.max_characters:
            raise CheckLimitError(
                f"Too much text to check at once: {characters} characters "
                f"(limit {limits.max_characters})",
                count,
                characters,
            )

    async def check_text(self, text: str, language: str | None = None) -> CheckResult:
        """Check a document and return problems tagged with sentence indexes.

        Args:
            text: Full original document.
            language: Short language code. When given it overrides
                ``general.language`` and skips auto-detection.

        Returns:
            CheckResult for the document.

        Raises:
            CheckerNotInitializedError: ``initialize()`` has not run.
            CheckLimitError: Sentence or character limit exceeded.
            CorrectionServiceError: The service call failed.
        """
        if not self._initialized or self._backend is None:
            raise CheckerNotInitializedError("Grammar checker not initialized")

        general = self._config.general
        service_language = map_language_code(language or general.language)
        if not text.strip():
            return CheckResult(language=service_language)

        processed, sentences = self.split_sentences(text)
        if not processed.extracted_text.strip():
            return CheckResult(processed_text=processed, language=service_language)

        detection: LanguageDetectionResult | None = None
        if language is None and general.auto_detect_language:
            detection = self._detector.detect_document(
                processed.raw_extracted_text, fallback=general.language
            )
            service_language = map_language_code(detection.language)

        self._enforce_limits(sentences)

        results: list[SentenceWithProblems | None] = [self._cache.get(s) for s in sentences]
        missing = [i for i, r in enumerate(results) if r is None]
        logger.debug(
            "Cache: %d hits, %d misses", len(sentences) - len(missing), len(missing)
        )

        if missing:
            request = CorrectionRequest(
                sentences=tuple(sentences[i] for i in missing),
                language=service_language,
                services=self._config.service.enabled.service_types(),
            )
            fetched = await self._backend.check_grammar(request)
            if len(fetched) != len(missing):
                raise MalformedResponseError(
                    f"Service returned {len(fetched)} results for {len(missing)} sentences"
                )
            for index, result in zip(missing, fetched):
                self._cache.set(sentences[index], result)
                results[index] = result

        min_confidence = self._config.checker.min_confidence
        problems: list[ProblemWithSentence] = []
        for index, result in enumerate(results):
            if result is None:
                continue
            for problem in result.problems:
                if problem.info.confidence.score >= min_confidence:
                    problems.append(ProblemWithSentence(problem, index))

        return CheckResult(
            problems=problems,
            sentences=sentences,
            processed_text=processed,
            language=service_language,
            detection=detection,
        )
