"""Split extracted text into sentences for the per-sentence correction API."""

from __future__ import annotations

import re

_SENTENCE_END = frozenset(".!?")

# Minimum accumulated length before a bare space may close a sentence
PARAGRAPH_BREAK_MIN_LENGTH = 20

CONTINUATION_WORDS: tuple[str, ...] = (
    "and",
    "or",
    "the",
    "a",
    "an",
    "in",
    "on",
    "at",
    "to",
    "for",
    "of",
    "with",
)
_CONTINUATION_RE = re.compile(r"(?:%s)\b" % "|".join(CONTINUATION_WORDS))

_CLEANUP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    (re.compile(r"\*{1,3}([^*]+)\*{1,3}"), r"\1"),
    (re.compile(r"_{1,3}([^_]+)_{1,3}"), r"\1"),
    (re.compile(r"~~([^~]+)~~"), r"\1"),
    (re.compile(r"^>\s*", re.MULTILINE), ""),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"^---+$", re.MULTILINE), ""),
    (re.compile(r"\n\s*\n"), "\n"),
)

_WRAPPER_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*{1,3}([^*]+)\*{1,3}"), r"\1"),
    (re.compile(r"_{1,3}([^_]+)_{1,3}"), r"\1"),
    (re.compile(r"~~([^~]+)~~"), r"\1"),
)

_LETTER_RE = re.compile(r"[^\W\d_]")


def clean_markdown_formatting(text: str) -> str:
    """Strip cosmetic markdown while keeping the words.

    Removes header markers, bold/italic/strikethrough wrappers, blockquote
    markers, list markers and horizontal rules, then collapses blank lines.
    """
    for pattern, replacement in _CLEANUP_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def _strip_wrappers(sentence: str) -> str:
    for pattern, replacement in _WRAPPER_RULES:
        sentence = pattern.sub(replacement, sentence)
    return sentence.strip()


def _starts_with_continuation(text: str) -> bool:
    return _CONTINUATION_RE.match(text[:8].lower()) is not None


def _is_paragraph_break(accumulated: str, following: str) -> bool:
    """Decide whether a bare space stands for a collapsed paragraph break.

    Args:
        accumulated: Sentence text gathered so far (without the space).
        following: Text right after the space.
    """
    current = accumulated.strip()
    if not current or current[-1] in _SENTENCE_END:
        return False
    if len(current) <= PARAGRAPH_BREAK_MIN_LENGTH:
        return False
    if not following or not following[0].isupper():
        return False
    return not _starts_with_continuation(following)


class SentenceSegmenter:
    """Punctuation- and heuristic-based sentence splitter.

    Every returned sentence ends in ``.``, ``!`` or ``?``, is longer than
    three characters and contains at least one letter.
    """

    def split(self, extracted_text: str) -> list[str]:
        """Split extracted text into checkable sentences.

        Args:
            extracted_text: Normalized text from the extractor.

        Returns:
            Sentences in document order.
        """
        cleaned = clean_markdown_formatting(extracted_text.strip())
        if not cleaned:
            return []

        raw_sentences = self._find_boundaries(cleaned)

        sentences: list[str] = []
        for sentence in raw_sentences:
            sentence = _strip_wrappers(sentence)
            if sentence and sentence[-1] not in _SENTENCE_END:
                sentence += "."
            if len(sentence) > 3 and _LETTER_RE.search(sentence):
                sentences.append(sentence)
        return sentences

    @staticmethod
    def _find_boundaries(text: str) -> list[str]:
        found: list[str] = []
        current: list[str] = []
        length = len(text)
        i = 0

        while i < length:
            ch = text[i]

            if ch in _SENTENCE_END:
                current.append(ch)
                if i + 2 < length and text[i + 1].isspace() and text[i + 2].isupper():
                    found.append("".join(current).strip())
                    current = []
                    i += 2
                    continue
                if i == length - 1:
                    found.append("".join(current).strip())
                    current = []
            elif ch == " " and _is_paragraph_break("".join(current), text[i + 1 : i + 9]):
                found.append("".join(current).strip())
                current = []
            else:
                current.append(ch)
            i += 1

        remainder = "".join(current).strip()
        if remainder:
            found.append(remainder)
        return found
