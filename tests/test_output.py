"""Tests for report formatting."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from gramark import __version__
from gramark.config import GramarkConfig
from gramark.editor.problems import GrammarProblemWithPosition
from gramark.output import DocumentReport, ReportFormatter, line_col

DOC = "First line is fine.\nSecond has a tset here."


@pytest.fixture
def report(make_problem: Any) -> DocumentReport:
    start = DOC.index("tset")
    return DocumentReport(
        path="notes.md",
        document=DOC,
        problems=[
            GrammarProblemWithPosition(
                problem=make_problem(13, 17, message="Typo", suggestions=("test",)),
                from_pos=start,
                to_pos=start + 4,
                sentence_index=1,
                sentence_offset=13,
            ),
            GrammarProblemWithPosition(
                problem=make_problem(0, 5, message="Style"),
                from_pos=0,
                to_pos=5,
                sentence_index=0,
                sentence_offset=0,
            ),
        ],
        sentences=["First line is fine.", "Second has a tset here."],
    )


class TestLineCol:
    def test_first_line(self) -> None:
        assert line_col(DOC, 0) == (1, 1)

    def test_second_line(self) -> None:
        assert line_col(DOC, DOC.index("tset")) == (2, 14)

    def test_at_newline(self) -> None:
        assert line_col(DOC, DOC.index("\n")) == (1, 20)


class TestFormatJson:
    def test_structure(self, report: DocumentReport, default_config: GramarkConfig) -> None:
        data = json.loads(ReportFormatter().format_json([report], default_config))
        assert data["gramark_version"] == __version__
        assert data["services"] == ["MLEC", "SPELL", "RULE"]
        assert "timestamp" in data
        file_entry = data["files"][0]
        assert file_entry["path"] == "notes.md"
        assert file_entry["sentence_count"] == 2
        assert file_entry["total_problems"] == 2
        first, second = file_entry["problems"]
        assert first["from"] == 0
        assert second["text"] == "tset"
        assert second["line"] == 2
        assert second["suggestions"] == ["test"]


class TestFormatText:
    def test_listing(self, report: DocumentReport) -> None:
        text = ReportFormatter().format_text(report)
        lines = text.splitlines()
        assert lines[0] == "notes.md: 2 problem(s)"
        assert lines[1] == "  1:1 [SPELLING/HIGH] 'First': Style"
        assert lines[2] == "  2:14 [SPELLING/HIGH] 'tset': Typo"
        assert lines[3].strip() == "suggestions: test"


class TestFormatAnnotated:
    def test_markers(self, report: DocumentReport) -> None:
        assert ReportFormatter().format_annotated(report) == (
            "[[First]] line is fine.\nSecond has a [[tset]] here."
        )

    def test_overlap_skipped(self, make_problem: Any) -> None:
        overlapping = DocumentReport(
            path="x.md",
            document="abcdefgh",
            problems=[
                GrammarProblemWithPosition(make_problem(0, 4), 0, 4, 0, 0),
                GrammarProblemWithPosition(make_problem(0, 4), 2, 6, 0, 2),
            ],
        )
        assert ReportFormatter().format_annotated(overlapping) == "[[abcd]]efgh"


class TestRender:
    def test_unknown_format(self, report: DocumentReport, default_config: GramarkConfig) -> None:
        with pytest.raises(ValueError, match="Unknown output format"):
            ReportFormatter().render([report], "xml", default_config)

    def test_write(
        self, report: DocumentReport, default_config: GramarkConfig, tmp_path: Path
    ) -> None:
        out = tmp_path / "report.txt"
        ReportFormatter().write([report], out, "annotated", default_config)
        assert "[[tset]]" in out.read_text(encoding="utf-8")
