"""Map offsets in extracted text back to the original document."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gramark.text.alignment import build_position_map, map_normalized_to_raw

if TYPE_CHECKING:
    from gramark.text.models import ProcessedText


class PositionMapper:
    """Resolve extracted-text offsets to original-document offsets.

    The raw extracted text (retained segments joined by single spaces) and
    its position map are computed once per ProcessedText, so a mapper can
    be reused for every offset of one check.

    Args:
        processed: Extraction result the offsets refer to.
    """

    def __init__(self, processed: ProcessedText) -> None:
        self._processed = processed
        self._retained = processed.retained_segments
        self._raw = processed.raw_extracted_text
        self._raw_starts = processed.raw_segment_starts
        self._position_map = build_position_map(self._raw, processed.extracted_text)

    def map_to_original(self, extracted_offset: int) -> int:
        """Return the original-document offset for an extracted-text offset."""
        processed = self._processed
        extracted = processed.extracted_text

        if not processed.exclusions and len(self._retained) == 1:
            segment = self._retained[0]
            if len(segment.text) == len(extracted):
                return segment.original_position + extracted_offset
            return segment.original_position + map_normalized_to_raw(
                extracted_offset, segment.text, extracted, self._position_map
            )

        raw_offset = map_normalized_to_raw(
            extracted_offset, self._raw, extracted, self._position_map
        )
        for segment, raw_start in zip(self._retained, self._raw_starts):
            if raw_offset <= raw_start + len(segment.text):
                return segment.original_position + (raw_offset - raw_start)

        if not processed.segments:
            return 0
        return processed.segments[-1].original_end


def map_to_original(extracted_offset: int, processed: ProcessedText) -> int:
    """Map a single extracted-text offset back to the original document.

    Args:
        extracted_offset: Offset in ``processed.extracted_text``.
        processed: Extraction result the offset refers to.

    Returns:
        Offset in the original document.
    """
    return PositionMapper(processed).map_to_original(extracted_offset)
