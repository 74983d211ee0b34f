"""Tracked problem state and the renderable highlights derived from it."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gramark.editor.changes import SetProblems
from gramark.service.models import (
    ConfidenceLevel,
    CorrectionServiceType,
    ProblemCategory,
)

if TYPE_CHECKING:
    from gramark.editor.changes import Transaction
    from gramark.editor.problems import GrammarProblemWithPosition
    from gramark.service.models import Problem

logger = logging.getLogger(__name__)

BASE_CLASS = "grazie-plugin-error"
SPELLING_CLASS = "grazie-plugin-spelling-error"
GRAMMAR_CLASS = "grazie-plugin-grammar-error"
HIGH_CONFIDENCE_CLASS = "grazie-plugin-error-high-confidence"
LOW_CONFIDENCE_CLASS = "grazie-plugin-error-low-confidence"
MAX_SUGGESTIONS = 3


@dataclass(frozen=True, slots=True)
class Decoration:
    """Renderable mark over ``[from_pos, to_pos)``."""

    from_pos: int
    to_pos: int
    css_class: str
    title: str
    attributes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_pos,
            "to": self.to_pos,
            "class": self.css_class,
            "title": self.title,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True, slots=True)
class DecorationState:
    """Tracked problems plus the decorations currently rendered for them."""

    problems: tuple[GrammarProblemWithPosition, ...] = ()
    decorations: tuple[Decoration, ...] = ()


def problem_suggestions(problem: Problem, limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Replacement texts built from each fix's Change parts, blanks skipped."""
    suggestions: list[str] = []
    for fix in problem.fixes:
        text = fix.replacement_text
        if text.strip():
            suggestions.append(text)
        if len(suggestions) == limit:
            break
    return suggestions


def problem_css_class(problem: Problem) -> str:
    info = problem.info
    if info.category is ProblemCategory.SPELLING or info.service is CorrectionServiceType.SPELL:
        type_class = SPELLING_CLASS
    else:
        type_class = GRAMMAR_CLASS
    confidence_class = (
        HIGH_CONFIDENCE_CLASS if info.confidence is ConfidenceLevel.HIGH else LOW_CONFIDENCE_CLASS
    )
    return f"{BASE_CLASS} {type_class} {confidence_class}"


def problem_title(problem: Problem) -> str:
    """Tooltip text: message, confidence, service, category and suggestions."""
    info = problem.info
    confidence = "High" if info.confidence is ConfidenceLevel.HIGH else "Low"
    source = f"{info.service.value}, {info.category.value}"
    title = f"{problem.message} ({confidence} confidence, {source})"
    suggestions = problem_suggestions(problem)
    if suggestions:
        title += f"\n\nSuggestions: {', '.join(suggestions)}"
    return title


def format_suggestion(suggestion: str, problem: Problem) -> str:
    """Label for a suggestion: the quoted replacement plus rule name and message."""
    display_name = problem.info.display_name
    message = problem.message
    label = f'"{suggestion}"'
    if display_name:
        detail = display_name
        if message and message != display_name:
            detail += f". {message}"
        label += f" ({detail})"
    elif message:
        label += f" ({message})"
    return label


def create_decorations(problems: Iterable[GrammarProblemWithPosition]) -> tuple[Decoration, ...]:
    """Build sorted decorations, skipping problems with unusable ranges."""
    valid = sorted(
        (p for p in problems if p.is_valid),
        key=lambda p: (p.from_pos, p.to_pos),
    )
    return tuple(
        Decoration(
            from_pos=p.from_pos,
            to_pos=p.to_pos,
            css_class=problem_css_class(p.problem),
            title=problem_title(p.problem),
            attributes={
                "data-grazie-plugin-problem": "true",
                "data-grazie-plugin-category": p.problem.info.category.value,
                "data-grazie-plugin-service": p.problem.info.service.value,
                "data-grazie-plugin-confidence": p.problem.info.confidence.value,
            },
        )
        for p in valid
    )


def merge_partial_problems(
    existing: Sequence[GrammarProblemWithPosition],
    fresh: Sequence[GrammarProblemWithPosition],
    offset: int,
    length: int,
    doc_length: int,
) -> list[GrammarProblemWithPosition]:
    """Combine problems outside a re-checked range with the range's new ones.

    Args:
        existing: Currently tracked problems, in document coordinates.
        fresh: Problems for the re-checked fragment, relative to the fragment.
        offset: Document offset of the fragment.
        length: Fragment length.
        doc_length: Current document length.

    Returns:
        Problems lying entirely outside ``[offset, offset + length)``
        followed by the shifted fresh ones that fit the document.
    """
    range_end = offset + length
    kept = [p for p in existing if p.to_pos <= offset or p.from_pos >= range_end]
    shifted = [p.shifted(offset) for p in fresh]
    placed = [p for p in shifted if p.from_pos >= 0 and p.to_pos <= doc_length and p.is_valid]
    return kept + placed


class DecorationReconciler:
    """Advance a DecorationState through transactions.

    ``SetProblems`` effects replace the problem list; document changes map
    every tracked range through the change set and drop ranges that become
    empty, negative or run past the new document end. Decorations are only
    rebuilt when one of those happened.
    """

    def update(self, state: DecorationState, transaction: Transaction) -> DecorationState:
        problems = state.problems
        changed = False

        for effect in transaction.effects:
            if isinstance(effect, SetProblems):
                problems = tuple(effect.problems)
                changed = True

        changes = transaction.changes
        if transaction.doc_changed and changes is not None and problems:
            new_length = changes.new_length
            mapped: list[GrammarProblemWithPosition] = []
            for p in problems:
                start = changes.map_pos(p.from_pos)
                end = changes.map_pos(p.to_pos)
                if start >= 0 and end > start and end <= new_length:
                    mapped.append(p.moved(start, end))
            if len(mapped) != len(problems):
                logger.debug("Edit invalidated %d problems", len(problems) - len(mapped))
            problems = tuple(mapped)
            changed = True

        if not changed:
            return state
        return DecorationState(problems=problems, decorations=create_decorations(problems))
