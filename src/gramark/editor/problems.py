"""Place sentence-relative problem ranges onto the original document."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from gramark.text.mapping import PositionMapper

if TYPE_CHECKING:
    from gramark.checker import ProblemWithSentence
    from gramark.service.models import Problem
    from gramark.text.models import ProcessedText

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GrammarProblemWithPosition:
    """A problem anchored to absolute offsets in the original document.

    Args:
        problem: Service problem being displayed.
        from_pos: Start offset in the document (inclusive).
        to_pos: End offset in the document (exclusive).
        sentence_index: Index of the sentence the problem was reported for.
        sentence_offset: Start of the highlight relative to that sentence.
    """

    problem: Problem
    from_pos: int
    to_pos: int
    sentence_index: int
    sentence_offset: int

    @property
    def is_valid(self) -> bool:
        return self.from_pos >= 0 and self.to_pos > self.from_pos

    def moved(self, from_pos: int, to_pos: int) -> GrammarProblemWithPosition:
        """Return a copy anchored at a new range."""
        return replace(self, from_pos=from_pos, to_pos=to_pos)

    def shifted(self, delta: int) -> GrammarProblemWithPosition:
        return self.moved(self.from_pos + delta, self.to_pos + delta)

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_pos,
            "to": self.to_pos,
            "sentence_index": self.sentence_index,
            "sentence_offset": self.sentence_offset,
            "message": self.problem.message,
            "category": self.problem.info.category.value,
            "service": self.problem.info.service.value,
            "confidence": self.problem.info.confidence.value,
        }


def locate_sentences(sentences: Sequence[str], extracted_text: str) -> list[int]:
    """Find where each sentence starts in the extracted text.

    Sentences are searched in order, each from the previous match onward,
    with a search from the beginning as fallback. A sentence whose final
    ``.`` was appended by the segmenter is retried without it.

    Returns:
        Start offset per sentence, or -1 when it cannot be found.
    """
    starts: list[int] = []
    cursor = 0
    for sentence in sentences:
        start = _find(extracted_text, sentence, cursor)
        if start == -1 and sentence.endswith(".") and len(sentence) > 1:
            start = _find(extracted_text, sentence[:-1], cursor)
        if start == -1:
            logger.debug("Sentence not found in extracted text: %r", sentence)
        else:
            cursor = start + 1
        starts.append(start)
    return starts


def _find(text: str, needle: str, cursor: int) -> int:
    start = text.find(needle, cursor)
    if start == -1 and cursor > 0:
        start = text.find(needle)
    return start


def map_problems(
    problems: Sequence[ProblemWithSentence],
    sentences: Sequence[str],
    processed: ProcessedText,
) -> list[GrammarProblemWithPosition]:
    """Map every highlight range of every problem to document offsets.

    Stateless: the same inputs always give the same output, and
    ``processed`` is never modified. Ranges that cannot be placed (sentence
    not found, mapped ``from >= to``, negative, or past the end of the
    document) are dropped.

    Args:
        problems: Problems tagged with their sentence index.
        sentences: Sentences exactly as submitted.
        processed: Extraction result those sentences came from.

    Returns:
        Positioned problems in input order.
    """
    mapper = PositionMapper(processed)
    sentence_starts = locate_sentences(sentences, processed.extracted_text)
    result: list[GrammarProblemWithPosition] = []

    for tagged in problems:
        index = tagged.sentence_index
        if not 0 <= index < len(sentence_starts):
            logger.debug("Problem refers to unknown sentence %d", index)
            continue
        base = sentence_starts[index]
        if base == -1:
            continue

        for highlight in tagged.problem.highlighting.always:
            start = mapper.map_to_original(base + highlight.start)
            end = mapper.map_to_original(base + highlight.end_exclusive)
            if start < 0 or end < 0 or start >= end or end > processed.document_length:
                logger.debug(
                    "Dropping unplaceable range %d..%d of sentence %d",
                    highlight.start,
                    highlight.end_exclusive,
                    index,
                )
                continue
            result.append(
                GrammarProblemWithPosition(
                    problem=tagged.problem,
                    from_pos=start,
                    to_pos=end,
                    sentence_index=index,
                    sentence_offset=highlight.start,
                )
            )

    return result
