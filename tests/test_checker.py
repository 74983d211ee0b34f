"""Tests for check orchestration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from gramark.checker import (
    CheckerError,
    CheckerNotInitializedError,
    CheckLimitError,
    CheckResult,
    GrammarChecker,
    map_language_code,
)
from gramark.config import GramarkConfig, load_config
from gramark.language import LanguageDetector
from gramark.service.errors import MalformedResponseError
from gramark.service.models import (
    ConfidenceLevel,
    CorrectionRequest,
    CorrectionServiceType,
    SentenceWithProblems,
)
from gramark.service.resolver import ResolutionResult

TWO_SENTENCES = "First sentence. Second sentence."


def _config(tmp_path: Path, **overrides: str) -> GramarkConfig:
    return load_config(user_config_path=tmp_path / "missing.toml", cli_overrides=overrides)


class TestMapLanguageCode:
    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("en", "ENGLISH"),
            ("de", "GERMAN"),
            ("RU", "RUSSIAN"),
            ("uk", "UKRAINIAN"),
            ("fr", "ENGLISH"),
        ],
    )
    def test_mapping(self, code: str, expected: str) -> None:
        assert map_language_code(code) == expected


class TestInitialization:
    async def test_check_before_initialize(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        checker = GrammarChecker(default_config, backend=fake_backend)
        with pytest.raises(CheckerNotInitializedError):
            await checker.check_text("Hello world.")

    async def test_missing_token(
        self, default_config: GramarkConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("GRAMARK_TOKEN", raising=False)
        checker = GrammarChecker(default_config)
        with pytest.raises(CheckerError, match="GRAMARK_TOKEN"):
            await checker.initialize()

    async def test_owned_client_uses_resolved_url(
        self, default_config: GramarkConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GRAMARK_TOKEN", "token")

        class StubResolver:
            async def resolve(self) -> ResolutionResult:
                return ResolutionResult(
                    url="https://resolved.example.test/", is_success=True, is_fallback=False
                )

        checker = GrammarChecker(default_config, resolver=StubResolver())  # type: ignore[arg-type]
        await checker.initialize()
        assert checker.is_initialized
        client = checker._owned_client
        assert client is not None
        assert client.endpoint == "https://resolved.example.test/user/v5/gec/correct/v3"
        await checker.close()
        assert not checker.is_initialized
        assert checker._owned_client is None

    async def test_context_manager(self, default_config: GramarkConfig, fake_backend: Any) -> None:
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            assert checker.is_initialized


class TestCheckText:
    """GrammarChecker.check_text behavior."""

    async def test_problems_tagged_with_sentence_index(
        self, default_config: GramarkConfig, fake_backend: Any, make_problem: Any
    ) -> None:
        fake_backend.problems["Second sentence."] = [make_problem(0, 6)]
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            result = await checker.check_text(TWO_SENTENCES)
        assert result.sentences == ["First sentence.", "Second sentence."]
        assert result.total_problems == 1
        assert result.problems[0].sentence_index == 1
        assert result.has_errors
        assert result.processed_text is not None

    async def test_request_payload(self, default_config: GramarkConfig, fake_backend: Any) -> None:
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            await checker.check_text(TWO_SENTENCES, language="de")
        request = fake_backend.requests[0]
        assert request.sentences == ("First sentence.", "Second sentence.")
        assert request.language == "GERMAN"
        assert request.services == (
            CorrectionServiceType.MLEC,
            CorrectionServiceType.SPELL,
            CorrectionServiceType.RULE,
        )

    async def test_cached_sentences_not_resubmitted(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            first = await checker.check_text(TWO_SENTENCES)
            second = await checker.check_text(TWO_SENTENCES)
        assert len(fake_backend.requests) == 1
        assert first.to_dict() == second.to_dict()

    async def test_only_misses_submitted(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            await checker.check_text("First sentence.")
            await checker.check_text(TWO_SENTENCES)
        assert fake_backend.requests[1].sentences == ("Second sentence.",)

    async def test_blank_text_makes_no_request(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            result = await checker.check_text("   \n\n  ")
        assert result == CheckResult(language="ENGLISH")
        assert fake_backend.requests == []

    async def test_excluded_only_text_makes_no_request(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            result = await checker.check_text("```\nprint('x')\n```")
        assert result.problems == []
        assert result.processed_text is not None
        assert fake_backend.requests == []

    async def test_low_confidence_filtered(
        self, tmp_path: Path, fake_backend: Any, make_problem: Any
    ) -> None:
        fake_backend.problems["First sentence."] = [
            make_problem(0, 5, confidence=ConfidenceLevel.LOW),
            make_problem(6, 14, confidence=ConfidenceLevel.HIGH),
        ]
        config = _config(tmp_path, **{"checker.min_confidence": "0.8"})
        async with GrammarChecker(config, backend=fake_backend) as checker:
            result = await checker.check_text(TWO_SENTENCES)
        assert [p.problem.info.confidence for p in result.problems] == [ConfidenceLevel.HIGH]

    async def test_default_confidence_keeps_low(
        self, default_config: GramarkConfig, fake_backend: Any, make_problem: Any
    ) -> None:
        fake_backend.problems["First sentence."] = [
            make_problem(0, 5, confidence=ConfidenceLevel.LOW)
        ]
        async with GrammarChecker(default_config, backend=fake_backend) as checker:
            result = await checker.check_text(TWO_SENTENCES)
        assert result.total_problems == 1

    async def test_sentence_limit(self, tmp_path: Path, fake_backend: Any) -> None:
        config = _config(tmp_path, **{"checker.max_sentences": "1"})
        async with GrammarChecker(config, backend=fake_backend) as checker:
            with pytest.raises(CheckLimitError) as exc_info:
                await checker.check_text(TWO_SENTENCES)
        assert exc_info.value.sentence_count == 2
        assert fake_backend.requests == []

    async def test_character_limit(self, tmp_path: Path, fake_backend: Any) -> None:
        config = _config(tmp_path, **{"checker.max_characters": "20"})
        async with GrammarChecker(config, backend=fake_backend) as checker:
            with pytest.raises(CheckLimitError, match="characters"):
                await checker.check_text(TWO_SENTENCES)

    async def test_no_services_enabled_requests_spell(
        self, tmp_path: Path, fake_backend: Any
    ) -> None:
        config = _config(
            tmp_path,
            **{
                "service.enabled.mlec": "false",
                "service.enabled.spell": "false",
                "service.enabled.rule": "false",
            },
        )
        async with GrammarChecker(config, backend=fake_backend) as checker:
            await checker.check_text(TWO_SENTENCES)
        assert fake_backend.requests[0].services == (CorrectionServiceType.SPELL,)

    async def test_result_count_mismatch(self, default_config: GramarkConfig) -> None:
        class ShortBackend:
            async def check_grammar(
                self, request: CorrectionRequest
            ) -> list[SentenceWithProblems]:
                return [SentenceWithProblems(sentence=request.sentences[0], language="ENGLISH")]

        async with GrammarChecker(default_config, backend=ShortBackend()) as checker:
            with pytest.raises(MalformedResponseError, match="2 sentences"):
                await checker.check_text(TWO_SENTENCES)
            assert len(checker.cache) == 0


class TestSplitSentences:
    def test_no_service_call(self, default_config: GramarkConfig) -> None:
        checker = GrammarChecker(default_config)
        processed, sentences = checker.split_sentences("# Title\n\nSome text here. More text.")
        assert sentences == ["Some text here.", "More text."]
        assert processed.exclusions


class TestLanguageDetection:
    """Auto-detection picks the request language unless one is given."""

    @staticmethod
    def _detector(code: str, probability: float) -> LanguageDetector:
        return LanguageDetector(candidates=lambda _text: [(code, probability)])

    async def test_detected_language_used(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        checker = GrammarChecker(
            default_config, backend=fake_backend, detector=self._detector("de", 0.99)
        )
        async with checker:
            result = await checker.check_text(TWO_SENTENCES)
        assert fake_backend.requests[0].language == "GERMAN"
        assert result.language == "GERMAN"
        assert result.detection is not None
        assert result.detection.language == "de"
        assert result.to_dict()["detection"]["language"] == "de"

    async def test_low_confidence_uses_configured_language(
        self, tmp_path: Path, fake_backend: Any
    ) -> None:
        config = _config(tmp_path, **{"general.language": "ru"})
        checker = GrammarChecker(config, backend=fake_backend, detector=self._detector("de", 0.4))
        async with checker:
            result = await checker.check_text(TWO_SENTENCES)
        assert fake_backend.requests[0].language == "RUSSIAN"
        assert result.detection is not None
        assert result.detection.confidence == pytest.approx(0.4)

    async def test_explicit_language_skips_detection(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        def fail(_text: str) -> list[tuple[str, float]]:
            raise AssertionError("detector should not run")

        checker = GrammarChecker(
            default_config, backend=fake_backend, detector=LanguageDetector(candidates=fail)
        )
        async with checker:
            result = await checker.check_text(TWO_SENTENCES, language="uk")
        assert fake_backend.requests[0].language == "UKRAINIAN"
        assert result.detection is None

    async def test_detection_disabled(self, tmp_path: Path, fake_backend: Any) -> None:
        config = _config(tmp_path, **{"general.auto_detect_language": "false"})
        checker = GrammarChecker(config, backend=fake_backend, detector=self._detector("de", 0.99))
        async with checker:
            result = await checker.check_text(TWO_SENTENCES)
        assert fake_backend.requests[0].language == "ENGLISH"
        assert result.detection is None
