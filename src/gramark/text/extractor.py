"""Build the segment map and the normalized text that gets checked."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from gramark.text.exclusions import ExclusionScanner
from gramark.text.models import ProcessedText, TextSegment

if TYPE_CHECKING:
    from gramark.text.models import TextExclusion

_WHITESPACE_RUN_RE = re.compile(r"\s+")


def build_segments(document: str, exclusions: Sequence[TextExclusion]) -> list[TextSegment]:
    """Partition the document into alternating retained and excluded segments.

    Args:
        document: Full original document.
        exclusions: Merged, sorted, non-overlapping exclusions.

    Returns:
        Segments covering ``[0, len(document))`` exactly, in document order.
    """
    segments: list[TextSegment] = []
    position = 0

    for exclusion in exclusions:
        if position < exclusion.start:
            gap = document[position : exclusion.start]
            segments.append(
                TextSegment(
                    text=gap,
                    original_position=position,
                    original_length=len(gap),
                    is_excluded=False,
                )
            )
        segments.append(
            TextSegment(
                text=exclusion.original_text,
                original_position=exclusion.start,
                original_length=exclusion.end - exclusion.start,
                is_excluded=True,
            )
        )
        position = exclusion.end

    if position < len(document):
        tail = document[position:]
        segments.append(
            TextSegment(
                text=tail,
                original_position=position,
                original_length=len(tail),
                is_excluded=False,
            )
        )

    return segments


class TextExtractor:
    """Turn a document plus its exclusions into a :class:`ProcessedText`."""

    def extract(self, document: str, exclusions: Sequence[TextExclusion]) -> ProcessedText:
        """Build segments and the whitespace-normalized extracted text.

        Args:
            document: Full original document.
            exclusions: Merged, sorted, non-overlapping exclusions.

        Returns:
            ProcessedText owned by the caller.
        """
        segments = build_segments(document, exclusions)
        joined = " ".join(s.text for s in segments if not s.is_excluded)
        extracted = _WHITESPACE_RUN_RE.sub(" ", joined).strip()
        return ProcessedText(
            segments=tuple(segments),
            extracted_text=extracted,
            exclusions=tuple(exclusions),
            document_length=len(document),
        )


def extract_text_for_check(
    document: str,
    scanner: ExclusionScanner | None = None,
) -> ProcessedText:
    """Scan a document for exclusions and extract its checkable text.

    Args:
        document: Full original document.
        scanner: Scanner to use; a default one with every detector enabled otherwise.

    Returns:
        ProcessedText for the document.
    """
    if scanner is None:
        scanner = ExclusionScanner()
    return TextExtractor().extract(document, scanner.scan_merged(document))
