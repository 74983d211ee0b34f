"""Data models for text extraction.

All positions are Python str indices into the original document.
Ranges are half-open: ``[start, end)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ExclusionKind(Enum):
    """Classification of a document region that is never sent for checking."""

    CODE_BLOCK = "code_block"
    INLINE_CODE = "inline_code"
    LINK = "link"
    IMAGE = "image"
    HTML_TAG = "html_tag"
    FRONTMATTER = "frontmatter"
    MATH = "math"
    HEADER = "header"


@dataclass(frozen=True)
class TextExclusion:
    """A region of the original document excluded from checking.

    Args:
        start: Start offset in the original document.
        end: End offset (exclusive) in the original document.
        kind: What kind of markup the region holds.
        original_text: The excluded text exactly as it appears in the document.
    """

    start: int
    end: int
    kind: ExclusionKind
    original_text: str

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must be >= start ({self.start})")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "start": self.start,
            "end": self.end,
            "kind": self.kind.value,
            "original_text": self.original_text,
        }


@dataclass(frozen=True)
class TextSegment:
    """A contiguous slice of the original document.

    Args:
        text: Segment text (the original slice, or the exclusion's original text).
        original_position: Offset of the slice in the original document.
        original_length: Length of the slice in the original document.
        is_excluded: True when the slice is an exclusion.
    """

    text: str
    original_position: int
    original_length: int
    is_excluded: bool

    @property
    def original_end(self) -> int:
        """End offset (exclusive) of the slice in the original document."""
        return self.original_position + self.original_length


@dataclass(frozen=True)
class ProcessedText:
    """Output of text extraction for one document.

    Never mutated after creation; one instance belongs to one check.

    Args:
        segments: Segments partitioning the whole document, in order.
        extracted_text: Retained text joined by spaces, whitespace-collapsed, trimmed.
        exclusions: Merged, sorted, non-overlapping exclusions.
        document_length: Length of the original document.
    """

    segments: tuple[TextSegment, ...]
    extracted_text: str
    exclusions: tuple[TextExclusion, ...]
    document_length: int = 0

    @property
    def retained_segments(self) -> list[TextSegment]:
        """Non-excluded segments in document order."""
        return [s for s in self.segments if not s.is_excluded]

    @property
    def raw_extracted_text(self) -> str:
        """Retained segment texts joined by single spaces, before normalization."""
        return " ".join(s.text for s in self.retained_segments)

    @property
    def raw_segment_starts(self) -> tuple[int, ...]:
        """Start offset of every retained segment inside :attr:`raw_extracted_text`."""
        starts: list[int] = []
        cursor = 0
        for segment in self.retained_segments:
            starts.append(cursor)
            cursor += len(segment.text) + 1
        return tuple(starts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "extracted_text": self.extracted_text,
            "document_length": self.document_length,
            "exclusions": [e.to_dict() for e in self.exclusions],
            "segments": [
                {
                    "text": s.text,
                    "original_position": s.original_position,
                    "original_length": s.original_length,
                    "is_excluded": s.is_excluded,
                }
                for s in self.segments
            ],
        }
