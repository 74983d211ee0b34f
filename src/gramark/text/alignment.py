"""Reverse whitespace normalization.

Normalization collapses every whitespace run to one space and trims both
ends; nothing else changes. The position map built here walks the raw and
normalized strings together so any normalized offset can be traced back
to the raw offset it came from. One collapsed space may stand for many
raw characters, so this is the only place that asymmetry is undone.
"""

from __future__ import annotations

import re

_WHITESPACE_RUN_RE = re.compile(r"\s+")


def normalize_whitespace(raw: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RUN_RE.sub(" ", raw).strip()


def build_position_map(raw: str, normalized: str) -> list[int]:
    """Map every normalized index to its raw index.

    Leading raw whitespace is skipped first. Matching characters advance
    both pointers by one. A normalized space consumes the whole raw
    whitespace run it replaced and maps to the start of that run.

    Args:
        raw: Original text.
        normalized: ``normalize_whitespace(raw)``.

    Returns:
        List where ``result[i]`` is the raw index of ``normalized[i]``.
    """
    mapping: list[int] = []
    raw_len = len(raw)
    r = 0
    while r < raw_len and raw[r].isspace():
        r += 1

    for ch in normalized:
        if r >= raw_len:
            break
        mapping.append(r)
        if ch == " " and raw[r].isspace():
            while r < raw_len and raw[r].isspace():
                r += 1
        else:
            r += 1

    return mapping


def map_normalized_to_raw(
    position: int,
    raw: str,
    normalized: str,
    position_map: list[int] | None = None,
) -> int:
    """Resolve a normalized offset to a raw offset.

    Args:
        position: Offset in the normalized text.
        raw: Original text.
        normalized: ``normalize_whitespace(raw)``.
        position_map: Precomputed ``build_position_map(raw, normalized)``.

    Returns:
        Offset in ``raw``. The normalized length maps to the raw length;
        offsets past the mapped table are extrapolated from the last entry.
    """
    if position < 0:
        return 0
    if position == len(normalized):
        return len(raw) if normalized else 0

    if position_map is None:
        position_map = build_position_map(raw, normalized)
    if not position_map:
        return position
    if position < len(position_map):
        return position_map[position]

    last = len(position_map) - 1
    return position_map[last] + (position - last)
