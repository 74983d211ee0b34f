"""Per-file progress and run statistics for ``gramark check``."""

from __future__ import annotations

import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from rich.progress import TaskID


@dataclass(frozen=True, slots=True)
class CheckEvent:
    """Emitted once a file has been checked.

    Attributes:
        path: File that was checked.
        file_index: Zero-based index of the file in the run.
        total_files: Number of files in the run.
        language: Service language the file was checked in.
        sentence_count: Sentences extracted from the file.
        problem_count: Problems placed on the file.
        elapsed_seconds: Wall time spent checking the file.
        categories: Problem count per category name.
    """

    path: str
    file_index: int
    total_files: int
    language: str = "ENGLISH"
    sentence_count: int = 0
    problem_count: int = 0
    elapsed_seconds: float = 0.0
    categories: dict[str, int] = field(default_factory=dict)

    @property
    def detail(self) -> str:
        return (
            f"{self.sentence_count} sentences, {self.problem_count} problems "
            f"({self.language}, {self.elapsed_seconds:.2f}s)"
        )


@dataclass
class RunStats:
    """Totals accumulated over a run."""

    files: int = 0
    sentences: int = 0
    problems: int = 0
    elapsed_seconds: float = 0.0
    categories: Counter[str] = field(default_factory=Counter)

    def add(self, event: CheckEvent) -> None:
        self.files += 1
        self.sentences += event.sentence_count
        self.problems += event.problem_count
        self.elapsed_seconds += event.elapsed_seconds
        self.categories.update(event.categories)

    @property
    def mean_seconds(self) -> float:
        return self.elapsed_seconds / self.files if self.files else 0.0


class ProgressReporter:
    """Show per-file progress and print a summary when the run ends.

    A live bar is rendered when stderr is a terminal; otherwise each file
    is logged on the ``gramark.progress`` logger.
    """

    def __init__(
        self,
        console: Console,
        verbose: bool = False,
        quiet: bool = False,
    ) -> None:
        self._console = console
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._is_tty: bool = sys.stderr.isatty()
        self._logger = logging.getLogger("gramark.progress")
        self.events: list[CheckEvent] = []
        self.stats = RunStats()

    def callback(self, event: CheckEvent) -> None:
        """Record a checked file and advance the display."""
        self.events.append(event)
        self.stats.add(event)
        if self._quiet:
            return

        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id,
                completed=event.file_index + 1,
                total=event.total_files,
                description=f"[cyan]{event.path}",
            )
            if self._verbose:
                self._console.print(f"  [dim]{event.path}: {event.detail}[/dim]")
        else:
            self._logger.info(
                "[%d/%d] %s: %s",
                event.file_index + 1,
                event.total_files,
                event.path,
                event.detail,
            )

    def start(self, total_files: int) -> None:
        if self._quiet:
            return
        if not self._is_tty:
            self._logger.info("Checking %d file(s)", total_files)
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("[cyan]checking", total=total_files)

    def summary_table(self) -> Table:
        """Per-file rows plus a totals row and the category breakdown."""
        table = Table(title="Check Summary", show_header=True, show_footer=True)
        table.add_column("File", style="cyan", footer=f"{self.stats.files} file(s)")
        table.add_column("Language", style="blue")
        table.add_column("Sentences", justify="right", footer=str(self.stats.sentences))
        table.add_column("Problems", justify="right", footer=str(self.stats.problems))
        table.add_column(
            "Time",
            justify="right",
            footer=f"{self.stats.elapsed_seconds:.2f}s (avg {self.stats.mean_seconds:.2f}s)",
        )

        for event in self.events:
            problems = str(event.problem_count)
            if event.problem_count:
                problems = f"[red]{problems}[/red]"
            table.add_row(
                event.path,
                event.language,
                str(event.sentence_count),
                problems,
                f"{event.elapsed_seconds:.2f}s",
            )

        if self.stats.categories:
            breakdown = ", ".join(
                f"{name}: {count}" for name, count in self.stats.categories.most_common()
            )
            table.caption = breakdown
        return table

    def finish(self) -> None:
        """Stop the live display and print the summary table."""
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

        if self._quiet or not self.events:
            return
        self._console.print(self.summary_table())
