"""Output formatting for check reports."""

from __future__ import annotations

import bisect
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from gramark import __version__
from gramark.editor.decorations import problem_suggestions

if TYPE_CHECKING:
    from pathlib import Path

    from gramark.config import GramarkConfig
    from gramark.editor.problems import GrammarProblemWithPosition

OPEN_MARKER = "[["
CLOSE_MARKER = "]]"


def line_col(document: str, offset: int) -> tuple[int, int]:
    """1-based line and column of ``offset`` in ``document``."""
    line_starts = [0] + [i + 1 for i, ch in enumerate(document) if ch == "\n"]
    line = bisect.bisect_right(line_starts, offset)
    return line, offset - line_starts[line - 1] + 1


@dataclass
class DocumentReport:
    """Positioned problems for one checked document.

    Args:
        path: Where the document came from, for display.
        document: Full original text.
        problems: Problems anchored to ``document`` offsets.
        sentences: Sentences submitted for the check.
        language: Service language name used.
    """

    path: str
    document: str
    problems: list[GrammarProblemWithPosition] = field(default_factory=list)
    sentences: list[str] = field(default_factory=list)
    language: str = "ENGLISH"

    @property
    def sorted_problems(self) -> list[GrammarProblemWithPosition]:
        return sorted(self.problems, key=lambda p: (p.from_pos, p.to_pos))


class ReportFormatter:
    """Format and write check reports in multiple output formats."""

    def problem_entry(
        self, report: DocumentReport, p: GrammarProblemWithPosition
    ) -> dict[str, Any]:
        """JSON entry for one problem, with line, column and suggestions."""
        line, column = line_col(report.document, p.from_pos)
        entry = p.to_dict()
        entry.update(
            {
                "line": line,
                "column": column,
                "text": report.document[p.from_pos : p.to_pos],
                "suggestions": problem_suggestions(p.problem),
            }
        )
        return entry

    def format_json(self, reports: list[DocumentReport], config: GramarkConfig) -> str:
        """Serialize reports as one JSON document.

        Args:
            reports: One report per checked file.
            config: Configuration used for the run.

        Returns:
            JSON string with version, metadata, and per-file problem detail.
        """
        payload: dict[str, Any] = {
            "gramark_version": __version__,
            "timestamp": datetime.now(UTC).isoformat(),
            "language": config.general.language,
            "services": [s.value for s in config.service.enabled.service_types()],
            "files": [
                {
                    "path": r.path,
                    "language": r.language,
                    "sentence_count": len(r.sentences),
                    "total_problems": len(r.problems),
                    "problems": [self.problem_entry(r, p) for p in r.sorted_problems],
                }
                for r in reports
            ],
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def format_text(self, report: DocumentReport) -> str:
        """Human-readable listing, one problem per line with its location."""
        lines: list[str] = [f"{report.path}: {len(report.problems)} problem(s)"]
        for p in report.sorted_problems:
            line, column = line_col(report.document, p.from_pos)
            snippet = report.document[p.from_pos : p.to_pos]
            info = p.problem.info
            lines.append(
                f"  {line}:{column} [{info.category.value}/{info.confidence.value}] "
                f"{snippet!r}: {p.problem.message}"
            )
            suggestions = problem_suggestions(p.problem)
            if suggestions:
                lines.append(f"      suggestions: {', '.join(suggestions)}")
        return "\n".join(lines)

    def format_annotated(self, report: DocumentReport) -> str:
        """Original document with each highlighted range wrapped in markers.

        Ranges overlapping an earlier (already marked) range are skipped.
        """
        parts: list[str] = []
        cursor = 0
        for p in report.sorted_problems:
            if p.from_pos < cursor or p.to_pos > len(report.document):
                continue
            parts.append(report.document[cursor : p.from_pos])
            parts.append(OPEN_MARKER + report.document[p.from_pos : p.to_pos] + CLOSE_MARKER)
            cursor = p.to_pos
        parts.append(report.document[cursor:])
        return "".join(parts)

    def render(
        self,
        reports: list[DocumentReport],
        output_format: str,
        config: GramarkConfig,
    ) -> str:
        """Render all reports in one format.

        Raises:
            ValueError: Unknown output format.
        """
        if output_format == "json":
            return self.format_json(reports, config)
        if output_format == "text":
            return "\n\n".join(self.format_text(r) for r in reports)
        if output_format == "annotated":
            return "\n\n".join(self.format_annotated(r) for r in reports)
        raise ValueError(f"Unknown output format: {output_format!r}")

    def write(
        self,
        reports: list[DocumentReport],
        path: Path,
        output_format: str,
        config: GramarkConfig,
    ) -> None:
        """Write formatted output to a file."""
        path.write_text(self.render(reports, output_format, config), encoding="utf-8")
