"""Tests for debounced realtime checking."""

from __future__ import annotations

import asyncio
import logging

import pytest

from gramark.editor.realtime import RealtimeChecker
from gramark.editor.view import TextEditorView

DELAY = 0.01


class Recorder:
    """Collects the checks a RealtimeChecker starts."""

    def __init__(self) -> None:
        self.ranges: list[tuple[int, int]] = []
        self.documents = 0

    async def check_range(self, view: TextEditorView, from_pos: int, to_pos: int) -> None:
        self.ranges.append((from_pos, to_pos))

    async def check_document(self, view: TextEditorView) -> None:
        self.documents += 1


def _checker(recorder: Recorder, view: TextEditorView | None) -> RealtimeChecker:
    return RealtimeChecker(
        recorder.check_range, recorder.check_document, lambda: view, delay=DELAY
    )


async def _settle(checker: RealtimeChecker) -> None:
    await asyncio.sleep(DELAY * 5)
    if checker.last_task is not None:
        await asyncio.gather(checker.last_task, return_exceptions=True)


class TestDebounce:
    """Rapid edits coalesce into a single check."""

    async def test_edits_coalesce(self) -> None:
        view = TextEditorView("some text here")
        recorder = Recorder()
        checker = _checker(recorder, view)
        checker.on_edit(view, 5, 6)
        checker.on_edit(view, 2, 3)
        checker.on_edit(view, 8, 9)
        assert checker.pending_range == (2, 9)
        await _settle(checker)
        assert recorder.ranges == [(2, 9)]
        assert checker.pending_range is None

    async def test_stale_view_skipped(self) -> None:
        view = TextEditorView("text")
        recorder = Recorder()
        checker = _checker(recorder, TextEditorView("other"))
        checker.on_edit(view, 0, 1)
        await _settle(checker)
        assert recorder.ranges == []
        assert checker.last_task is None

    async def test_disabled(self) -> None:
        view = TextEditorView("text")
        recorder = Recorder()
        checker = _checker(recorder, view)
        checker.enabled = False
        checker.on_edit(view, 0, 1)
        assert checker.pending_range is None
        await _settle(checker)
        assert recorder.ranges == []

    async def test_no_pending_range_checks_document(self) -> None:
        view = TextEditorView("text")
        recorder = Recorder()
        checker = _checker(recorder, view)
        checker._fire(view)
        await _settle(checker)
        assert recorder.documents == 1

    async def test_close_cancels(self) -> None:
        view = TextEditorView("text")
        recorder = Recorder()
        checker = _checker(recorder, view)
        checker.on_edit(view, 0, 1)
        checker.close()
        await _settle(checker)
        assert recorder.ranges == []


class TestViewIntegration:
    async def test_transactions_feed_edits(self) -> None:
        view = TextEditorView("hello world")
        recorder = Recorder()
        checker = _checker(recorder, view)
        view.add_update_listener(checker.on_transaction)
        view.insert(5, ",")
        view.replace(7, 12, "there")
        await _settle(checker)
        assert recorder.ranges == [(5, 12)]

    async def test_failure_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        view = TextEditorView("text")

        async def failing(v: TextEditorView, from_pos: int, to_pos: int) -> None:
            raise RuntimeError("service down")

        checker = RealtimeChecker(failing, Recorder().check_document, lambda: view, delay=DELAY)
        with caplog.at_level(logging.ERROR, logger="gramark.editor.realtime"):
            checker.on_edit(view, 0, 1)
            await _settle(checker)
            await asyncio.sleep(0)
        assert "service down" in caplog.text
