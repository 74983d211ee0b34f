"""Document edits and position mapping across them."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Edit:
    """Replace ``removed_length`` characters at ``from_pos`` with ``inserted_text``.

    Offsets are in the coordinates of the document before the change.
    """

    from_pos: int
    removed_length: int = 0
    inserted_text: str = ""

    def __post_init__(self) -> None:
        if self.from_pos < 0:
            raise ValueError(f"from_pos must be >= 0, got {self.from_pos}")
        if self.removed_length < 0:
            raise ValueError(f"removed_length must be >= 0, got {self.removed_length}")

    @property
    def to_pos(self) -> int:
        return self.from_pos + self.removed_length

    @property
    def delta(self) -> int:
        return len(self.inserted_text) - self.removed_length


class ChangeSet:
    """A set of non-overlapping edits applied together.

    Args:
        edits: Edits in pre-change coordinates, any order.
        doc_length: Length of the document the edits apply to.

    Raises:
        ValueError: Edits overlap or reach past the document end.
    """

    def __init__(self, edits: Iterable[Edit], doc_length: int) -> None:
        ordered = sorted(edits, key=lambda e: (e.from_pos, e.to_pos))
        previous_end = 0
        for edit in ordered:
            if edit.from_pos < previous_end:
                raise ValueError(f"Overlapping edit at {edit.from_pos}")
            if edit.to_pos > doc_length:
                raise ValueError(
                    f"Edit {edit.from_pos}..{edit.to_pos} exceeds document length {doc_length}"
                )
            previous_end = edit.to_pos
        self._edits: tuple[Edit, ...] = tuple(ordered)
        self._length = doc_length

    @classmethod
    def single(cls, doc_length: int, from_pos: int, to_pos: int, insert: str = "") -> ChangeSet:
        """Build a change set replacing ``[from_pos, to_pos)`` with ``insert``."""
        return cls([Edit(from_pos, to_pos - from_pos, insert)], doc_length)

    @property
    def edits(self) -> tuple[Edit, ...]:
        return self._edits

    @property
    def length(self) -> int:
        return self._length

    @property
    def new_length(self) -> int:
        return self._length + sum(e.delta for e in self._edits)

    @property
    def empty(self) -> bool:
        return all(e.removed_length == 0 and not e.inserted_text for e in self._edits)

    def apply(self, text: str) -> str:
        """Return ``text`` with every edit applied."""
        if len(text) != self._length:
            raise ValueError(
                f"Change set expects a document of length {self._length}, got {len(text)}"
            )
        parts: list[str] = []
        cursor = 0
        for edit in self._edits:
            parts.append(text[cursor : edit.from_pos])
            parts.append(edit.inserted_text)
            cursor = edit.to_pos
        parts.append(text[cursor:])
        return "".join(parts)

    def map_pos(self, pos: int, assoc: int = -1) -> int:
        """Map a pre-change position to the post-change document.

        Positions before an edit are unchanged and positions after it shift
        by its length delta. A position at the start of a replaced range
        stays at its start; at the end it moves past the insertion. Inside a
        replaced range, or exactly at a pure insertion, ``assoc`` decides:
        negative sticks to the start, positive moves past the inserted text.
        """
        offset = 0
        for edit in self._edits:
            if pos < edit.from_pos:
                break
            if pos > edit.to_pos:
                offset += edit.delta
                continue
            if edit.removed_length == 0:
                side = assoc
            elif pos == edit.from_pos:
                side = -1
            elif pos == edit.to_pos:
                side = 1
            else:
                side = assoc
            start = edit.from_pos + offset
            return start if side < 0 else start + len(edit.inserted_text)
        return pos + offset

    def changed_ranges(self) -> list[tuple[int, int]]:
        """Ranges touched by the edits, in post-change coordinates."""
        ranges: list[tuple[int, int]] = []
        offset = 0
        for edit in self._edits:
            start = edit.from_pos + offset
            ranges.append((start, start + len(edit.inserted_text)))
            offset += edit.delta
        return ranges


@dataclass(frozen=True, slots=True)
class SetProblems:
    """Effect replacing the tracked problem list."""

    problems: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class Transaction:
    """Document changes and state effects applied atomically."""

    changes: ChangeSet | None = None
    effects: Sequence[Any] = field(default_factory=tuple)

    @property
    def doc_changed(self) -> bool:
        return self.changes is not None and not self.changes.empty
