"""Debounced re-checking of edited regions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gramark.core.protocols import EditorView
    from gramark.editor.changes import Transaction

logger = logging.getLogger(__name__)

RangeCheck = Callable[["EditorView", int, int], Awaitable[None]]
DocumentCheck = Callable[["EditorView"], Awaitable[None]]
ActiveView = Callable[[], "EditorView | None"]


class RealtimeChecker:
    """Coalesce rapid edits into one check of the range they span.

    Every edit widens the pending range and restarts the timer. When the
    timer fires, the check runs only if the edited view is still the active
    one; a stale timer is a no-op.

    Args:
        check_range: Called with the view and the pending ``[from, to)``.
        check_document: Called when no range is pending.
        active_view: Returns the view currently in focus.
        delay: Debounce delay in seconds.
    """

    def __init__(
        self,
        check_range: RangeCheck,
        check_document: DocumentCheck,
        active_view: ActiveView,
        delay: float = 0.5,
    ) -> None:
        self._check_range = check_range
        self._check_document = check_document
        self._active_view = active_view
        self._delay = delay
        self.enabled = True
        self._timer: asyncio.TimerHandle | None = None
        self._pending_from: int | None = None
        self._pending_to: int | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def pending_range(self) -> tuple[int, int] | None:
        if self._pending_from is None or self._pending_to is None:
            return None
        return self._pending_from, self._pending_to

    @property
    def last_task(self) -> asyncio.Task[None] | None:
        """Task of the most recent check, if one was started."""
        return self._task

    def on_edit(self, view: EditorView, from_pos: int, to_pos: int) -> None:
        """Record an edited range and (re)schedule the check.

        Must be called from within a running event loop.
        """
        if not self.enabled:
            return
        if self._pending_from is None or self._pending_to is None:
            self._pending_from, self._pending_to = from_pos, to_pos
        else:
            self._pending_from = min(self._pending_from, from_pos)
            self._pending_to = max(self._pending_to, to_pos)
        self._schedule(view)

    def on_transaction(self, view: EditorView, transaction: Transaction) -> None:
        """Update listener for TextEditorView: feed document changes to on_edit."""
        if not transaction.doc_changed or transaction.changes is None:
            return
        ranges = transaction.changes.changed_ranges()
        self.on_edit(view, min(r[0] for r in ranges), max(r[1] for r in ranges))

    def _schedule(self, view: EditorView) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire, view)

    def _fire(self, view: EditorView) -> None:
        self._timer = None
        if self._active_view() is not view:
            logger.debug("Skipping scheduled check: view is no longer active")
            return
        pending = self.pending_range
        if pending is not None:
            self._pending_from = self._pending_to = None
            self._task = asyncio.ensure_future(self._check_range(view, *pending))
        else:
            self._task = asyncio.ensure_future(self._check_document(view))
        self._task.add_done_callback(_log_failure)

    def close(self) -> None:
        """Cancel any scheduled check."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def _log_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Realtime check failed: %s", exc)
