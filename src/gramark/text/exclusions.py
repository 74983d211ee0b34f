"""Detection of document regions that must not be sent for checking.

Detectors run in a fixed priority order. A later detector never splits
text already claimed by an earlier one (links skip image ranges), and the
merge step keeps the kind of whichever range starts first.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from markdown_it import MarkdownIt
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.front_matter import front_matter_plugin

from gramark.text.models import ExclusionKind, TextExclusion

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```|~~~[\s\S]*?~~~")
_INDENTED_CODE_RE = re.compile(r"^(?: {4}|\t).*$", re.MULTILINE)
_INLINE_CODE_RE = re.compile(r"`{1,2}[^`\n]*`{1,2}")
_FRONTMATTER_RE = re.compile(r"^---[\s\S]*?^---", re.MULTILINE)
_MATH_BLOCK_RE = re.compile(r"\$\$[\s\S]*?\$\$")
_INLINE_MATH_RE = re.compile(r"\$[^$\n]*\$")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]*)\)")
_LINK_RE = re.compile(r"(?<!!)\[([^\]]*)\]\(([^)]*)\)|\[([^\]]*)\]\[([^\]]*)\]")
_AUTOLINK_RE = re.compile(r"<https?://[^>]+>")
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_HEADER_RE = re.compile(r"^#{1,6}\s+.*$", re.MULTILINE)

# Block tokens from the CommonMark parse that map onto exclusions
_BLOCK_TOKEN_KINDS: dict[str, ExclusionKind] = {
    "fence": ExclusionKind.CODE_BLOCK,
    "code_block": ExclusionKind.CODE_BLOCK,
    "front_matter": ExclusionKind.FRONTMATTER,
    "math_block": ExclusionKind.MATH,
    "math_block_dollarmath": ExclusionKind.MATH,
}


def merge_exclusions(exclusions: Iterable[TextExclusion]) -> list[TextExclusion]:
    """Coalesce overlapping or adjacent exclusions.

    Input must already be sorted by ``start``. Two ranges merge when the
    next one starts at or before the current one's end. The merged range
    keeps the first range's kind, and its ``original_text`` is the first
    range's text followed by whatever part of the next range extends past it,
    so it always equals the covered document slice.

    Args:
        exclusions: Exclusions sorted by start offset.

    Returns:
        Sorted, mutually non-overlapping exclusions.
    """
    merged: list[TextExclusion] = []
    current: TextExclusion | None = None

    for nxt in exclusions:
        if current is None:
            current = nxt
            continue

        if nxt.start <= current.end:
            if nxt.end > current.end:
                tail = nxt.original_text[current.end - nxt.start :]
                current = TextExclusion(
                    start=current.start,
                    end=nxt.end,
                    kind=current.kind,
                    original_text=current.original_text + tail,
                )
        else:
            merged.append(current)
            current = nxt

    if current is not None:
        merged.append(current)
    return merged


class ExclusionScanner:
    """Find code, links, images, markup and other non-prose regions.

    Args:
        enabled_kinds: Kinds whose detectors run. None enables all of them.
    """

    def __init__(self, enabled_kinds: Iterable[ExclusionKind] | None = None) -> None:
        self._enabled = frozenset(enabled_kinds) if enabled_kinds is not None else frozenset(
            ExclusionKind
        )
        self._md = MarkdownIt("commonmark")
        front_matter_plugin(self._md)
        dollarmath_plugin(self._md)

    @property
    def enabled_kinds(self) -> frozenset[ExclusionKind]:
        return self._enabled

    def scan(self, document: str) -> list[TextExclusion]:
        """Run every enabled detector in priority order.

        Args:
            document: Full original document.

        Returns:
            Exclusions in detection order, unsorted and possibly overlapping.
        """
        exclusions: list[TextExclusion] = []
        if not document:
            return exclusions

        block_ranges = self._block_token_ranges(document)

        detectors: list[tuple[ExclusionKind, Callable[[str, list[TextExclusion]], None]]] = [
            (ExclusionKind.CODE_BLOCK, self._find_code_blocks),
            (ExclusionKind.INLINE_CODE, self._find_inline_code),
            (ExclusionKind.FRONTMATTER, self._find_frontmatter),
            (ExclusionKind.MATH, self._find_math),
            (ExclusionKind.IMAGE, self._find_images),
            (ExclusionKind.LINK, self._find_links),
            (ExclusionKind.HTML_TAG, self._find_html_tags),
            (ExclusionKind.HEADER, self._find_headers),
        ]
        for kind, detector in detectors:
            if kind not in self._enabled:
                continue
            detector(document, exclusions)
            exclusions.extend(r for r in block_ranges if r.kind is kind)

        return exclusions

    def scan_merged(self, document: str) -> list[TextExclusion]:
        """Scan, sort by start and merge into a canonical exclusion list."""
        found = self.scan(document)
        # sort is stable: equal starts keep detector priority
        found.sort(key=lambda e: e.start)
        return merge_exclusions(found)

    # ------------------------------------------------------------------
    # Regex detectors
    # ------------------------------------------------------------------

    @staticmethod
    def _collect(
        pattern: re.Pattern[str],
        text: str,
        kind: ExclusionKind,
        exclusions: list[TextExclusion],
    ) -> None:
        for match in pattern.finditer(text):
            exclusions.append(
                TextExclusion(
                    start=match.start(),
                    end=match.end(),
                    kind=kind,
                    original_text=match.group(0),
                )
            )

    def _find_code_blocks(self, text: str, exclusions: list[TextExclusion]) -> None:
        self._collect(_FENCED_CODE_RE, text, ExclusionKind.CODE_BLOCK, exclusions)
        self._collect(_INDENTED_CODE_RE, text, ExclusionKind.CODE_BLOCK, exclusions)

    def _find_inline_code(self, text: str, exclusions: list[TextExclusion]) -> None:
        self._collect(_INLINE_CODE_RE, text, ExclusionKind.INLINE_CODE, exclusions)

    @staticmethod
    def _find_frontmatter(text: str, exclusions: list[TextExclusion]) -> None:
        # Front matter only counts at the very start of the document
        match = _FRONTMATTER_RE.match(text)
        if match:
            exclusions.append(
                TextExclusion(
                    start=0,
                    end=match.end(),
                    kind=ExclusionKind.FRONTMATTER,
                    original_text=match.group(0),
                )
            )

    def _find_math(self, text: str, exclusions: list[TextExclusion]) -> None:
        self._collect(_MATH_BLOCK_RE, text, ExclusionKind.MATH, exclusions)
        self._collect(_INLINE_MATH_RE, text, ExclusionKind.MATH, exclusions)

    def _find_images(self, text: str, exclusions: list[TextExclusion]) -> None:
        self._collect(_IMAGE_RE, text, ExclusionKind.IMAGE, exclusions)

    @staticmethod
    def _find_links(text: str, exclusions: list[TextExclusion]) -> None:
        for match in _LINK_RE.finditer(text):
            start, end = match.start(), match.end()
            overlaps = any(start < e.end and end > e.start for e in exclusions)
            if overlaps:
                continue
            exclusions.append(
                TextExclusion(
                    start=start,
                    end=end,
                    kind=ExclusionKind.LINK,
                    original_text=match.group(0),
                )
            )

        for match in _AUTOLINK_RE.finditer(text):
            exclusions.append(
                TextExclusion(
                    start=match.start(),
                    end=match.end(),
                    kind=ExclusionKind.LINK,
                    original_text=match.group(0),
                )
            )

    def _find_html_tags(self, text: str, exclusions: list[TextExclusion]) -> None:
        self._collect(_HTML_TAG_RE, text, ExclusionKind.HTML_TAG, exclusions)

    def _find_headers(self, text: str, exclusions: list[TextExclusion]) -> None:
        self._collect(_HEADER_RE, text, ExclusionKind.HEADER, exclusions)

    # ------------------------------------------------------------------
    # CommonMark block parse
    # ------------------------------------------------------------------

    def _block_token_ranges(self, document: str) -> list[TextExclusion]:
        """Convert block-level code, math and front matter tokens to exclusions.

        Token positions are line indices; they are converted to character
        offsets spanning whole lines, without the final line's newline.
        """
        lines = document.split("\n")
        line_starts: list[int] = []
        offset = 0
        for line in lines:
            line_starts.append(offset)
            offset += len(line) + 1

        ranges: list[TextExclusion] = []
        for token in self._md.parse(document):
            kind = _BLOCK_TOKEN_KINDS.get(token.type)
            if kind is None or token.map is None:
                continue
            start_line, end_line = token.map
            if end_line <= start_line:
                continue
            last_line = min(end_line, len(lines)) - 1
            if kind is ExclusionKind.FRONTMATTER and not _is_closed_front_matter(
                token, lines[last_line]
            ):
                # unclosed front matter would swallow the whole document
                continue
            start = line_starts[start_line]
            end = min(line_starts[last_line] + len(lines[last_line]), len(document))
            ranges.append(
                TextExclusion(
                    start=start,
                    end=end,
                    kind=kind,
                    original_text=document[start:end],
                )
            )

        logger.debug("Block parse contributed %d exclusion ranges", len(ranges))
        return ranges


def _is_closed_front_matter(token: Any, last_line: str) -> bool:
    return token.markup != "" and last_line.rstrip().startswith(token.markup)
