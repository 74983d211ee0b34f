"""Bounded LRU cache of per-sentence correction results."""

from __future__ import annotations

import hashlib
from collections import OrderedDict
from typing import Generic, TypeVar

V = TypeVar("V")


def hash_sentence(text: str) -> str:
    """Return the SHA-1 hex digest used as a sentence cache key."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


class ResultCache(Generic[V]):
    """Least-recently-used cache keyed by sentence content.

    Keys are content hashes, so identical sentences anywhere in any
    document share one entry.

    Args:
        capacity: Maximum number of entries kept.
    """

    def __init__(self, capacity: int = 200) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._entries: OrderedDict[str, V] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, sentence: str) -> V | None:
        """Return the cached result and mark it most recently used."""
        key = hash_sentence(sentence)
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, sentence: str, result: V) -> None:
        """Store a result, evicting the least recently used entry when full."""
        key = hash_sentence(sentence)
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._capacity:
            self._entries.popitem(last=False)
        self._entries[key] = result

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, sentence: object) -> bool:
        return isinstance(sentence, str) and hash_sentence(sentence) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
