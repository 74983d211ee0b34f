"""In-memory host editor: document text plus decoration state."""

from __future__ import annotations

import logging
from collections.abc import Callable

from gramark.editor.changes import ChangeSet, Edit, Transaction
from gramark.editor.decorations import DecorationReconciler, DecorationState

logger = logging.getLogger(__name__)

UpdateListener = Callable[["TextEditorView", Transaction], None]


class TextEditorView:
    """A single-threaded editor model that applies transactions atomically.

    Each dispatched transaction first applies its document changes, then
    advances the decoration state, then notifies update listeners.

    Args:
        text: Initial document.
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._state = DecorationState()
        self._reconciler = DecorationReconciler()
        self._listeners: list[UpdateListener] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def decoration_state(self) -> DecorationState:
        return self._state

    def add_update_listener(self, listener: UpdateListener) -> None:
        self._listeners.append(listener)

    def remove_update_listener(self, listener: UpdateListener) -> None:
        self._listeners.remove(listener)

    def dispatch(self, transaction: Transaction) -> None:
        """Apply a transaction.

        Raises:
            ValueError: The change set was built for a different document length.
        """
        if transaction.changes is not None:
            self._text = transaction.changes.apply(self._text)
        self._state = self._reconciler.update(self._state, transaction)
        for listener in list(self._listeners):
            listener(self, transaction)

    def replace(self, from_pos: int, to_pos: int, insert: str = "") -> None:
        """Replace ``[from_pos, to_pos)`` with ``insert``."""
        changes = ChangeSet([Edit(from_pos, to_pos - from_pos, insert)], len(self._text))
        self.dispatch(Transaction(changes=changes))

    def insert(self, pos: int, text: str) -> None:
        self.replace(pos, pos, text)
