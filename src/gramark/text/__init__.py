"""Text extraction, offset mapping and sentence splitting."""

from __future__ import annotations

from gramark.text.alignment import build_position_map, map_normalized_to_raw, normalize_whitespace
from gramark.text.exclusions import ExclusionScanner, merge_exclusions
from gramark.text.extractor import TextExtractor, build_segments, extract_text_for_check
from gramark.text.mapping import PositionMapper, map_to_original
from gramark.text.models import ExclusionKind, ProcessedText, TextExclusion, TextSegment
from gramark.text.sentences import SentenceSegmenter, clean_markdown_formatting

__all__ = [
    "ExclusionKind",
    "ExclusionScanner",
    "PositionMapper",
    "ProcessedText",
    "SentenceSegmenter",
    "TextExclusion",
    "TextExtractor",
    "TextSegment",
    "build_position_map",
    "build_segments",
    "clean_markdown_formatting",
    "extract_text_for_check",
    "map_normalized_to_raw",
    "map_to_original",
    "merge_exclusions",
    "normalize_whitespace",
]
