"""Tests for segment building and text extraction."""

from __future__ import annotations

import pytest

from gramark.text.exclusions import ExclusionScanner
from gramark.text.extractor import TextExtractor, build_segments, extract_text_for_check
from gramark.text.models import ExclusionKind

DOCUMENTS = [
    "",
    "Plain sentence without markup.",
    "Use the `console.log()` function to debug.",
    "---\ntitle: Test\nauthor: John\n---\n\nThis is content.",
    "Before code.\n```typescript\nconst x = 1;\n```\nAfter code.",
    "# Title\n\nSee [docs](https://x.y) and `a` plus <b>bold</b>.\n\n![i](p.png)",
    "`only code`",
]


class TestSegmentCoverage:
    """Segments partition the document exactly."""

    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_segments_reconstruct_document(self, document: str) -> None:
        processed = extract_text_for_check(document)
        assert "".join(s.text for s in processed.segments) == document

    @pytest.mark.parametrize("document", DOCUMENTS)
    def test_segments_are_contiguous(self, document: str) -> None:
        processed = extract_text_for_check(document)
        position = 0
        for segment in processed.segments:
            assert segment.original_position == position
            position = segment.original_end
        assert position == len(document)

    def test_no_exclusions_single_segment(self) -> None:
        segments = build_segments("Hello world", [])
        assert len(segments) == 1
        assert not segments[0].is_excluded
        assert segments[0].original_length == 11


class TestExtractedText:
    """extracted_text content."""

    @pytest.mark.parametrize(
        ("document", "expected"),
        [
            ("Use the `console.log()` function to debug.", "Use the function to debug."),
            (
                "Before code.\n```typescript\nconst x = 1;\n```\nAfter code.",
                "Before code. After code.",
            ),
            ("Visit [Google](https://google.com) for search.", "Visit for search."),
            (
                "Here is an image: ![alt text](image.jpg) and more text.",
                "Here is an image: and more text.",
            ),
            ("---\ntitle: Test\nauthor: John\n---\n\nThis is content.", "This is content."),
            (
                "The formula is $$E = mc^2$$ and inline math $x + y = z$.",
                "The formula is and inline math .",
            ),
            ("Hello  my firend?", "Hello my firend?"),
            ("  padded\n\ntext  ", "padded text"),
        ],
    )
    def test_extraction(self, document: str, expected: str) -> None:
        assert extract_text_for_check(document).extracted_text == expected

    def test_only_excluded_content(self) -> None:
        processed = extract_text_for_check("`only code`")
        assert processed.extracted_text == ""
        assert processed.retained_segments == []

    def test_document_length_recorded(self) -> None:
        doc = "Some text."
        assert extract_text_for_check(doc).document_length == len(doc)

    def test_scanner_toggle_keeps_inline_code(self) -> None:
        scanner = ExclusionScanner(set(ExclusionKind) - {ExclusionKind.INLINE_CODE})
        processed = extract_text_for_check("Call `run` now.", scanner)
        assert processed.extracted_text == "Call `run` now."


class TestRawExtractedText:
    """Raw (pre-normalization) text and segment starts."""

    def test_raw_text_joins_with_space(self) -> None:
        processed = extract_text_for_check("Use the `x` function.")
        assert processed.raw_extracted_text == "Use the   function."
        assert processed.raw_segment_starts == (0, 9)

    def test_extractor_takes_explicit_exclusions(self) -> None:
        processed = TextExtractor().extract("abc def", [])
        assert processed.extracted_text == "abc def"
        assert processed.exclusions == ()
