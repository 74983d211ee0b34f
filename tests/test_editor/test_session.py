"""Tests for live editor sessions."""

from __future__ import annotations

import asyncio
from typing import Any

from gramark.checker import GrammarChecker
from gramark.config import GramarkConfig
from gramark.editor.session import EditorSession, expand_check_range
from gramark.editor.view import TextEditorView
from gramark.service.models import CorrectionRequest, SentenceWithProblems
from gramark.text.models import ExclusionKind, TextExclusion


class TestExpandCheckRange:
    def test_widens_to_paragraph(self) -> None:
        text = "Para one.\n\nPara two here.\n\nPara three."
        assert expand_check_range(text, 13, 14) == (11, 25)
        assert text[11:25] == "Para two here."

    def test_first_and_last_paragraph(self) -> None:
        text = "Only one paragraph here."
        assert expand_check_range(text, 3, 5) == (0, len(text))

    def test_grows_over_cut_exclusion(self) -> None:
        text = "Intro.\n\n```\na\n\nb\n```\n\nOutro."
        fence = TextExclusion(8, 20, ExclusionKind.CODE_BLOCK, text[8:20])
        assert expand_check_range(text, 15, 16, [fence]) == (8, 20)

    def test_clamped(self) -> None:
        assert expand_check_range("abc", -5, 99) == (0, 3)


async def _session(
    config: GramarkConfig, backend: Any, text: str
) -> tuple[EditorSession, TextEditorView]:
    checker = GrammarChecker(config, backend=backend)
    await checker.initialize()
    view = TextEditorView(text)
    return EditorSession(view, checker, delay=0.01), view


async def _settle(session: EditorSession) -> None:
    await asyncio.sleep(0.05)
    task = session.realtime.last_task
    if task is not None:
        await task


class TestEditorSession:
    """Edits trigger checks whose problems land on the view."""

    async def test_edit_triggers_range_check(
        self, default_config: GramarkConfig, fake_backend: Any, make_problem: Any
    ) -> None:
        fake_backend.problems["I has a dirh."] = [make_problem(8, 12)]
        fake_backend.problems["You has a dirh."] = [make_problem(10, 14)]
        session, view = await _session(default_config, fake_backend, "I has a dirh.")
        view.insert(len(view.text), " You has a dirh.")
        await _settle(session)
        spans = [(p.from_pos, p.to_pos) for p in session.decorator.get_problems(view)]
        assert spans == [(8, 12), (24, 28)]
        session.close()

    async def test_check_document(
        self, default_config: GramarkConfig, fake_backend: Any, make_problem: Any
    ) -> None:
        fake_backend.problems["I has a dirh."] = [make_problem(8, 12)]
        session, view = await _session(default_config, fake_backend, "I has a dirh.")
        await session.check_document(view)
        assert session.decorator.has_decorations(view)
        session.close()

    async def test_results_for_stale_text_discarded(
        self, default_config: GramarkConfig, make_problem: Any
    ) -> None:
        views: list[TextEditorView] = []

        class EditingBackend:
            async def check_grammar(
                self, request: CorrectionRequest
            ) -> list[SentenceWithProblems]:
                views[0].insert(0, "X")
                return [
                    SentenceWithProblems(s, request.language, (make_problem(0, 1),))
                    for s in request.sentences
                ]

        session, view = await _session(default_config, EditingBackend(), "I has a dirh.")
        views.append(view)
        session.close()
        await session.check_document(view)
        assert not session.decorator.has_decorations(view)

    async def test_inactive_session_skips(
        self, default_config: GramarkConfig, fake_backend: Any
    ) -> None:
        session, view = await _session(default_config, fake_backend, "I has a dirh.")
        session.active = False
        view.insert(0, "So ")
        await _settle(session)
        assert fake_backend.requests == []
        session.close()
