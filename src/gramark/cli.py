"""Click-based CLI for gramark."""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console

from gramark import __version__
from gramark.config import GramarkConfig, load_config

if TYPE_CHECKING:
    from gramark.output import DocumentReport
    from gramark.progress import ProgressReporter

_SUPPORTED_EXTENSIONS = frozenset({".md", ".markdown", ".txt"})


def _resolve_inputs(input_path: Path) -> list[Path]:
    """Resolve a path to a list of checkable files.

    If input_path is a directory, find all supported files within it.
    Otherwise return the single file.
    """
    if input_path.is_dir():
        files = sorted(
            p for p in input_path.rglob("*") if p.suffix.lower() in _SUPPORTED_EXTENSIONS
        )
        if not files:
            raise click.BadParameter(
                f"No supported files found in {input_path}", param_hint="INPUT_PATH"
            )
        return files
    return [input_path]


def _log_level(config: GramarkConfig, verbose: bool, quiet: bool) -> int:
    """Root log level: ``general.log_level``, unless -v or -q is given."""
    if quiet:
        return logging.CRITICAL
    if verbose:
        return logging.DEBUG
    level = logging.getLevelName(config.general.log_level.upper())
    return level if isinstance(level, int) else logging.WARNING


@click.group()
@click.version_option(version=__version__, prog_name="gramark")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to user config TOML file.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose output.")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Suppress all output.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """gramark -- grammar and spelling checks for markdown documents."""
    ctx.ensure_object(dict)
    try:
        cfg = load_config(user_config_path=config_path)
    except (TypeError, ValueError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc
    ctx.obj = {
        "config": cfg,
        "config_path": config_path,
        "verbose": verbose,
        "quiet": quiet,
    }

    logging.basicConfig(
        level=_log_level(cfg, verbose, quiet),
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--sentences", "show_sentences", is_flag=True, help="List the split sentences.")
@click.option("--exclusions", "show_exclusions", is_flag=True, help="Show excluded regions.")
@click.pass_context
def extract(
    ctx: click.Context,
    input_path: Path,
    show_sentences: bool,
    show_exclusions: bool,
) -> None:
    """Show the text that would be sent for checking (offline)."""
    from rich.table import Table

    from gramark.text.exclusions import ExclusionScanner
    from gramark.text.extractor import extract_text_for_check
    from gramark.text.sentences import SentenceSegmenter

    obj = ctx.obj
    config: GramarkConfig = obj["config"]
    console = Console(quiet=obj["quiet"])

    document = input_path.read_text(encoding="utf-8")
    scanner = ExclusionScanner(config.exclusions.enabled_kinds())
    processed = extract_text_for_check(document, scanner)

    click.echo(processed.extracted_text)

    if show_sentences:
        sentences = SentenceSegmenter().split(processed.extracted_text)
        click.echo("")
        for index, sentence in enumerate(sentences):
            click.echo(f"{index:3d}  {sentence}")

    if show_exclusions:
        table = Table(title="Exclusions", show_header=True)
        table.add_column("Kind", style="cyan")
        table.add_column("Range", style="blue")
        table.add_column("Text", style="green")
        for exclusion in processed.exclusions:
            preview = exclusion.original_text.replace("\n", "\\n")
            if len(preview) > 40:
                preview = preview[:37] + "..."
            table.add_row(
                exclusion.kind.value, f"{exclusion.start}-{exclusion.end}", preview
            )
        console.print(table)


async def _check_files(
    config: GramarkConfig,
    files: list[Path],
    language: str | None,
    reporter: ProgressReporter,
) -> list[DocumentReport]:
    from gramark.checker import GrammarChecker
    from gramark.editor.problems import map_problems
    from gramark.output import DocumentReport
    from gramark.progress import CheckEvent

    reports: list[DocumentReport] = []
    async with GrammarChecker(config) as checker:
        for index, fpath in enumerate(files):
            document = fpath.read_text(encoding="utf-8")
            started = time.perf_counter()
            result = await checker.check_text(document, language=language)
            elapsed = time.perf_counter() - started
            problems = []
            if result.processed_text is not None:
                problems = map_problems(result.problems, result.sentences, result.processed_text)
            report = DocumentReport(
                path=str(fpath),
                document=document,
                problems=problems,
                sentences=result.sentences,
                language=result.language,
            )
            reports.append(report)
            reporter.callback(
                CheckEvent(
                    path=str(fpath),
                    file_index=index,
                    total_files=len(files),
                    language=result.language,
                    sentence_count=len(result.sentences),
                    problem_count=len(problems),
                    elapsed_seconds=elapsed,
                    categories=dict(Counter(p.problem.info.category.value for p in problems)),
                )
            )
    return reports


@main.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output-format",
    type=click.Choice(["text", "json", "annotated"]),
    default="text",
    help="Report output format.",
)
@click.option("-o", "--output", "output_path", type=click.Path(path_type=Path), default=None)
@click.option("--language", default=None, help="Language code (en, de, ru, uk).")
@click.pass_context
def check(
    ctx: click.Context,
    input_path: Path,
    output_format: str,
    output_path: Path | None,
    language: str | None,
) -> None:
    """Check documents against the correction service."""
    from gramark.checker import CheckerError
    from gramark.output import ReportFormatter
    from gramark.progress import ProgressReporter
    from gramark.service.errors import CorrectionServiceError

    obj = ctx.obj
    config: GramarkConfig = obj["config"]
    console = Console(stderr=True, quiet=obj["quiet"])
    reporter = ProgressReporter(console, verbose=obj["verbose"], quiet=obj["quiet"])

    files = _resolve_inputs(input_path)
    reporter.start(total_files=len(files))
    try:
        reports = asyncio.run(_check_files(config, files, language, reporter))
    except (CheckerError, CorrectionServiceError) as exc:
        reporter.finish()
        raise click.ClickException(str(exc)) from exc
    reporter.finish()

    formatter = ReportFormatter()
    if output_path is not None:
        formatter.write(reports, output_path, output_format, config)
        click.echo(f"Report: {output_path}")
    else:
        click.echo(formatter.render(reports, output_format, config))


@main.command(name="config")
@click.option("--set", "set_kv", nargs=2, multiple=True, help="Set KEY VALUE.")
@click.pass_context
def config_cmd(
    ctx: click.Context,
    set_kv: tuple[tuple[str, str], ...],
) -> None:
    """View the resolved gramark configuration."""
    import json as json_mod

    from rich.syntax import Syntax

    obj = ctx.obj
    config: GramarkConfig = obj["config"]
    console = Console(quiet=obj["quiet"])

    if set_kv:
        try:
            config = load_config(user_config_path=obj["config_path"], cli_overrides=dict(set_kv))
        except (TypeError, ValueError) as exc:
            raise click.BadParameter(str(exc), param_hint="--set") from exc

    json_str = json_mod.dumps(config.to_dict(), indent=2)
    syntax = Syntax(json_str, "json", theme="monokai")
    console.print(syntax)
