"""Tests for mapping extracted offsets back to the document."""

from __future__ import annotations

from gramark.text.extractor import extract_text_for_check
from gramark.text.mapping import PositionMapper, map_to_original


class TestSingleSegment:
    """Documents without exclusions."""

    def test_identity_without_runs(self) -> None:
        doc = "This is a simple sentence with no markup."
        processed = extract_text_for_check(doc)
        mapper = PositionMapper(processed)
        for k in range(len(doc) + 1):
            assert mapper.map_to_original(k) == k

    def test_collapsed_space(self) -> None:
        doc = "Hello  my firend?"
        processed = extract_text_for_check(doc)
        assert processed.extracted_text == "Hello my firend?"
        offset = processed.extracted_text.index("firend")
        assert map_to_original(offset, processed) == 10
        assert doc[10:16] == "firend"

    def test_leading_whitespace(self) -> None:
        doc = "   Indented start."
        processed = extract_text_for_check(doc)
        assert map_to_original(0, processed) == 3


class TestMultipleSegments:
    """Documents with exclusions between retained text."""

    def test_inline_code_shift(self) -> None:
        doc = "Use the `console.log()` function to debug."
        processed = extract_text_for_check(doc)
        start = processed.extracted_text.index("function")
        mapper = PositionMapper(processed)
        from_pos = mapper.map_to_original(start)
        to_pos = mapper.map_to_original(start + len("function"))
        assert (from_pos, to_pos) == (24, 32)
        assert doc[from_pos:to_pos] == "function"

    def test_after_frontmatter(self) -> None:
        doc = "---\ntitle: Test\n---\n\nThis is contnet."
        processed = extract_text_for_check(doc)
        start = processed.extracted_text.index("contnet")
        assert doc[map_to_original(start, processed) :].startswith("contnet")

    def test_after_fenced_block(self) -> None:
        doc = "Before code.\n```js\nx\n```\nAfter cdoe."
        processed = extract_text_for_check(doc)
        start = processed.extracted_text.index("cdoe")
        mapper = PositionMapper(processed)
        assert doc[mapper.map_to_original(start) : mapper.map_to_original(start + 4)] == "cdoe"

    def test_end_of_text_maps_to_document_end(self) -> None:
        doc = "Use the `console.log()` function to debug."
        processed = extract_text_for_check(doc)
        assert map_to_original(len(processed.extracted_text), processed) == len(doc)

    def test_every_word_round_trips(self) -> None:
        doc = "# Head\n\nSome  text with [a link](u) and   `code` between\nwords here."
        processed = extract_text_for_check(doc)
        mapper = PositionMapper(processed)
        cursor = 0
        for word in processed.extracted_text.split(" "):
            start = processed.extracted_text.index(word, cursor)
            cursor = start + len(word)
            mapped = mapper.map_to_original(start)
            assert doc[mapped : mapped + len(word)] == word

    def test_mapper_does_not_mutate(self) -> None:
        processed = extract_text_for_check("A `b` c.")
        before = processed.to_dict()
        PositionMapper(processed).map_to_original(2)
        assert processed.to_dict() == before
