"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from gramark.config import GramarkConfig, load_config
from gramark.service.models import (
    ConfidenceLevel,
    CorrectionRequest,
    CorrectionServiceType,
    FixPart,
    FixPartType,
    HighlightRange,
    KindInfo,
    Problem,
    ProblemCategory,
    ProblemFix,
    ProblemHighlighting,
    SentenceWithProblems,
)

ProblemFactory = Callable[..., Problem]


@pytest.fixture
def default_config(tmp_path: Path) -> GramarkConfig:
    """Bundled defaults, isolated from any real user config."""
    return load_config(user_config_path=tmp_path / "missing.toml")


@pytest.fixture
def make_problem() -> ProblemFactory:
    """Factory for service problems highlighting ``[start, end)`` of a sentence."""

    def factory(
        start: int,
        end: int,
        message: str = "Possible spelling mistake",
        category: ProblemCategory = ProblemCategory.SPELLING,
        service: CorrectionServiceType = CorrectionServiceType.SPELL,
        confidence: ConfidenceLevel = ConfidenceLevel.HIGH,
        suggestions: tuple[str, ...] = (),
    ) -> Problem:
        return Problem(
            info=KindInfo(
                id="spelling.typo",
                category=category,
                service=service,
                display_name="Typo",
                confidence=confidence,
            ),
            message=message,
            highlighting=ProblemHighlighting(always=(HighlightRange(start, end),)),
            fixes=tuple(
                ProblemFix(parts=(FixPart(FixPartType.CHANGE, text=s),)) for s in suggestions
            ),
        )

    return factory


class FakeBackend:
    """In-memory correction backend returning canned problems per sentence."""

    def __init__(self, problems: dict[str, list[Problem]] | None = None) -> None:
        self.problems = problems or {}
        self.requests: list[CorrectionRequest] = []

    async def check_grammar(self, request: CorrectionRequest) -> list[SentenceWithProblems]:
        self.requests.append(request)
        return [
            SentenceWithProblems(
                sentence=s,
                language=request.language,
                problems=tuple(self.problems.get(s, [])),
            )
            for s in request.sentences
        ]


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
