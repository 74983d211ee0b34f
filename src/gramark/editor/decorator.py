"""Apply check results to an editor view as tracked problems."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gramark.editor.changes import ChangeSet, Edit, SetProblems, Transaction
from gramark.editor.decorations import merge_partial_problems
from gramark.editor.problems import map_problems
from gramark.text.extractor import extract_text_for_check

if TYPE_CHECKING:
    from gramark.checker import CheckResult
    from gramark.core.protocols import EditorView
    from gramark.editor.problems import GrammarProblemWithPosition
    from gramark.text.exclusions import ExclusionScanner
    from gramark.text.models import ProcessedText

logger = logging.getLogger(__name__)


class EditorDecorator:
    """Turn CheckResults into positioned problems on a view.

    Args:
        scanner: Scanner used when a result carries no extraction of its own.
    """

    def __init__(self, scanner: ExclusionScanner | None = None) -> None:
        self._scanner = scanner

    def _processed_for(self, document: str, result: CheckResult) -> ProcessedText:
        processed = result.processed_text
        if processed is not None and processed.document_length == len(document):
            return processed
        return extract_text_for_check(document, self._scanner)

    def apply_results(self, view: EditorView, document: str, result: CheckResult) -> None:
        """Replace every tracked problem with those of a full-document check.

        Args:
            view: Target editor.
            document: Text that was checked.
            result: Outcome of checking ``document``.
        """
        if not result.has_errors:
            self.clear(view)
            return

        positioned = map_problems(
            result.problems, result.sentences, self._processed_for(document, result)
        )
        doc_length = len(view.text)
        valid = [p for p in positioned if p.from_pos >= 0 and p.to_pos <= doc_length]
        logger.debug("Applying %d of %d mapped problems", len(valid), len(positioned))
        self._set_problems(view, valid)

    def apply_partial_results(
        self,
        view: EditorView,
        offset: int,
        fragment: str,
        result: CheckResult,
    ) -> None:
        """Merge results for a re-checked fragment into the tracked problems.

        Problems wholly outside ``[offset, offset + len(fragment))`` are kept;
        everything inside is replaced by the fragment's problems.
        """
        existing = view.decoration_state.problems
        fresh: list[GrammarProblemWithPosition] = []
        if result.has_errors:
            fresh = map_problems(
                result.problems, result.sentences, self._processed_for(fragment, result)
            )
        merged = merge_partial_problems(existing, fresh, offset, len(fragment), len(view.text))
        self._set_problems(view, merged)

    def clear(self, view: EditorView) -> None:
        self._set_problems(view, [])

    def has_decorations(self, view: EditorView) -> bool:
        return bool(view.decoration_state.problems)

    def get_problems(self, view: EditorView) -> list[GrammarProblemWithPosition]:
        return list(view.decoration_state.problems)

    def apply_suggestion(
        self,
        view: EditorView,
        problem: GrammarProblemWithPosition,
        replacement: str,
    ) -> None:
        """Replace a problem's range with ``replacement`` and stop tracking it.

        The other problems are carried through the edit in the same
        transaction, so their ranges stay aligned with the new text.

        Raises:
            ValueError: ``problem`` is not currently tracked by ``view``.
        """
        tracked = view.decoration_state.problems
        if problem not in tracked:
            raise ValueError("Problem is not tracked by this view")
        remaining = tuple(p for p in tracked if p != problem)
        changes = ChangeSet(
            [Edit(problem.from_pos, problem.to_pos - problem.from_pos, replacement)],
            len(view.text),
        )
        view.dispatch(Transaction(changes=changes, effects=(SetProblems(remaining),)))

    @staticmethod
    def _set_problems(view: EditorView, problems: list[GrammarProblemWithPosition]) -> None:
        view.dispatch(Transaction(effects=(SetProblems(tuple(problems)),)))
