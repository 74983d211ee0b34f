"""Interface contracts between the checking core and its collaborators.

The correction service and the host editor are external; anything that
conforms to these protocols can be plugged in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gramark.editor.changes import Transaction
    from gramark.editor.decorations import DecorationState
    from gramark.service.models import CorrectionRequest, SentenceWithProblems


@runtime_checkable
class CorrectionBackend(Protocol):
    """Submit sentences and return one result per sentence, in order."""

    async def check_grammar(self, request: CorrectionRequest) -> list[SentenceWithProblems]: ...


@runtime_checkable
class PositionMapping(Protocol):
    """Map a pre-edit document position to its post-edit position."""

    def map_pos(self, pos: int, assoc: int = -1) -> int: ...


@runtime_checkable
class EditorView(Protocol):
    """Host editor surface the decorator and realtime checker drive."""

    @property
    def text(self) -> str: ...

    @property
    def decoration_state(self) -> DecorationState: ...

    def dispatch(self, transaction: Transaction) -> None: ...
