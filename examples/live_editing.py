#!/usr/bin/env python3
"""Simulate live editing with debounced checks and suggestion application.

Demonstrates:
- EditorSession wiring a view, a checker and the decorator
- Problems following the text through edits
- Applying the first suggestion of a problem

Requires the GRAMARK_TOKEN environment variable.

Usage:
    uv run python examples/live_editing.py <path-to-document>
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from gramark.checker import GrammarChecker
from gramark.config import load_config
from gramark.editor.decorations import problem_suggestions
from gramark.editor.session import EditorSession
from gramark.editor.view import TextEditorView


def show(view: TextEditorView) -> None:
    for p in view.decoration_state.problems:
        print(f"  {p.from_pos}-{p.to_pos} {view.text[p.from_pos:p.to_pos]!r}: {p.problem.message}")


async def run(document: str) -> None:
    config = load_config()
    async with GrammarChecker(config) as checker:
        view = TextEditorView(document)
        session = EditorSession(view, checker, delay=config.checker.checking_delay_ms / 1000)

        await session.check_document(view)
        print("Initial problems:")
        show(view)

        # Typing at the start shifts every tracked range
        view.insert(0, "Note: ")
        await asyncio.sleep(config.checker.checking_delay_ms / 1000 + 0.1)
        if session.realtime.last_task is not None:
            await session.realtime.last_task
        print("After edit:")
        show(view)

        problems = session.decorator.get_problems(view)
        if problems:
            first = problems[0]
            suggestions = problem_suggestions(first.problem)
            if suggestions:
                session.decorator.apply_suggestion(view, first, suggestions[0])
                print(f"Applied {suggestions[0]!r}:")
                show(view)

        session.close()
        print("-" * 50)
        print(view.text)


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python examples/live_editing.py <path-to-document>")
        sys.exit(1)

    input_path = Path(sys.argv[1])
    if not input_path.exists():
        print(f"File not found: {input_path}")
        sys.exit(1)

    asyncio.run(run(input_path.read_text(encoding="utf-8")))


if __name__ == "__main__":
    main()
