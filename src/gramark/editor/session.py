"""Wire a view, a checker and the decorator into live checking."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from gramark.editor.decorator import EditorDecorator
from gramark.editor.realtime import RealtimeChecker
from gramark.text.exclusions import ExclusionScanner

if TYPE_CHECKING:
    from gramark.checker import GrammarChecker
    from gramark.editor.view import TextEditorView
    from gramark.text.models import TextExclusion

logger = logging.getLogger(__name__)

_PARAGRAPH_SEPARATOR = "\n\n"


def expand_check_range(
    text: str,
    from_pos: int,
    to_pos: int,
    exclusions: Sequence[TextExclusion] = (),
) -> tuple[int, int]:
    """Widen an edited range to whole paragraphs.

    The range also grows to cover any exclusion it cuts through, so a fence
    spanning blank lines is never checked from its middle.
    """
    from_pos = max(0, min(from_pos, len(text)))
    to_pos = max(from_pos, min(to_pos, len(text)))

    start = text.rfind(_PARAGRAPH_SEPARATOR, 0, from_pos)
    start = 0 if start == -1 else start + len(_PARAGRAPH_SEPARATOR)
    end = text.find(_PARAGRAPH_SEPARATOR, to_pos)
    end = len(text) if end == -1 else end

    for exclusion in exclusions:
        if exclusion.start < start < exclusion.end:
            start = exclusion.start
        if exclusion.start < end < exclusion.end:
            end = exclusion.end
    return min(start, from_pos), max(end, to_pos)


class EditorSession:
    """Live checking for one view.

    Edits are debounced through a RealtimeChecker; each check covers the
    edited paragraphs and merges its problems into the view. Results that
    arrive after the document changed again are discarded, since a newer
    check is already scheduled.

    Args:
        view: Editor to check.
        checker: Initialized GrammarChecker.
        delay: Debounce delay in seconds.
    """

    def __init__(
        self,
        view: TextEditorView,
        checker: GrammarChecker,
        delay: float = 0.5,
        scanner: ExclusionScanner | None = None,
    ) -> None:
        self.view = view
        self.active = True
        self._checker = checker
        self._scanner = scanner or ExclusionScanner()
        self._decorator = EditorDecorator(self._scanner)
        self.realtime = RealtimeChecker(
            self.check_range,
            self.check_document,
            lambda: self.view if self.active else None,
            delay=delay,
        )
        view.add_update_listener(self.realtime.on_transaction)

    @property
    def decorator(self) -> EditorDecorator:
        return self._decorator

    async def check_document(self, view: TextEditorView) -> None:
        document = view.text
        result = await self._checker.check_text(document)
        if view.text != document:
            logger.debug("Document changed during check; discarding results")
            return
        self._decorator.apply_results(view, document, result)

    async def check_range(self, view: TextEditorView, from_pos: int, to_pos: int) -> None:
        document = view.text
        start, end = expand_check_range(
            document, from_pos, to_pos, self._scanner.scan_merged(document)
        )
        fragment = document[start:end]
        result = await self._checker.check_text(fragment)
        if view.text != document:
            logger.debug("Document changed during range check; discarding results")
            return
        self._decorator.apply_partial_results(view, start, fragment, result)

    def close(self) -> None:
        self.realtime.close()
        self.view.remove_update_listener(self.realtime.on_transaction)
