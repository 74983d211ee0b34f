"""Editor integration: positioned problems, edits, decorations, live checks."""

from __future__ import annotations

from gramark.editor.changes import ChangeSet, Edit, SetProblems, Transaction
from gramark.editor.decorations import (
    Decoration,
    DecorationReconciler,
    DecorationState,
    create_decorations,
    merge_partial_problems,
)
from gramark.editor.decorator import EditorDecorator
from gramark.editor.problems import GrammarProblemWithPosition, map_problems
from gramark.editor.realtime import RealtimeChecker
from gramark.editor.session import EditorSession, expand_check_range
from gramark.editor.view import TextEditorView

__all__ = [
    "ChangeSet",
    "Decoration",
    "DecorationReconciler",
    "DecorationState",
    "Edit",
    "EditorDecorator",
    "EditorSession",
    "GrammarProblemWithPosition",
    "RealtimeChecker",
    "SetProblems",
    "TextEditorView",
    "Transaction",
    "create_decorations",
    "expand_check_range",
    "map_problems",
    "merge_partial_problems",
]
