"""CLI interface for mempro-analyzer.

Provides one command per analysis operation: leak analysis, summary, top
leakers, fragmentation, large allocations, the combined issue bundle, and
quick statistics.  Each command resolves the MemPro export to read, loads a
fresh snapshot, runs the analysis, and prints the result -- issue lists as
JSON, reports verbatim.

Uses Click for command parsing and Rich for terminal output.
"""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape

from mempro_analyzer import __version__
from mempro_analyzer.analysis.issues import MemoryIssue
from mempro_analyzer.analysis.memory_analyzer import DEFAULT_TOP_LEAKERS, MemoryAnalyzer
from mempro_analyzer.analysis.report_generator import ReportGenerator, render_issues_json
from mempro_analyzer.snapshot.loader import SnapshotLoadError

logger = logging.getLogger(__name__)

console = Console()

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------
_ENV_JSON_PATH = "MEMPRO_JSON_PATH"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
_DEFAULT_JSON_PATH = (
    r"C:\Program Files\PureDevSoftware\MemPro\MemProReader\test_memory_analysis.json"
)


# ============================================================================
# Helpers
# ============================================================================


def _error(message: str) -> None:
    """Print an error message and exit with code 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise SystemExit(1)


def _resolve_json_path(explicit: Optional[str]) -> str:
    """Pick the export to analyse: explicit option, then environment, then default."""
    if explicit:
        return explicit

    env_path = os.environ.get(_ENV_JSON_PATH, "")
    if env_path:
        return env_path

    return _DEFAULT_JSON_PATH


def _load_analyzer(json_path: Optional[str]) -> MemoryAnalyzer:
    """Load the resolved export, exiting with an error message on failure."""
    path = _resolve_json_path(json_path)
    logger.debug("Analyzing MemPro export at %s", path)
    try:
        return MemoryAnalyzer.from_file(path)
    except SnapshotLoadError as exc:
        _error(f"Failed to analyze: {exc}")

    # Unreachable, but satisfies type checker.
    raise SystemExit(1)  # pragma: no cover


def _emit_issues(
    analyzer: MemoryAnalyzer,
    issues: List[MemoryIssue],
    output_format: str,
    title: str,
) -> None:
    if output_format == "terminal":
        ReportGenerator(analyzer, console=console).print_issues_table(issues, title=title)
    else:
        click.echo(render_issues_json(issues))


json_path_option = click.option(
    "--json-path",
    "json_path",
    type=str,
    default=None,
    help=(
        "Path to MemPro JSON analysis file. Defaults to "
        f"${_ENV_JSON_PATH} or the MemPro reader's default export."
    ),
)

format_option = click.option(
    "--format", "-f",
    "output_format",
    type=click.Choice(["json", "terminal"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Print issues as a JSON array or as a terminal table.",
)


# ============================================================================
# CLI group
# ============================================================================


@click.group(name="mempro-analyze")
@click.version_option(version=__version__, prog_name="mempro-analyze")
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose debug logging.",
)
def cli(verbose: bool) -> None:
    """MemPro Memory Analyzer - Prioritised memory issues from MemPro exports."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


# ============================================================================
# Issue commands
# ============================================================================


@cli.command(name="analyze-leaks")
@json_path_option
@format_option
def analyze_leaks(json_path: Optional[str], output_format: str) -> None:
    """Analyze memory leaks and print a prioritized list of issues."""
    analyzer = _load_analyzer(json_path)
    _emit_issues(analyzer, analyzer.analyze_leaks(), output_format.lower(), "Memory Leaks")


@cli.command(name="analyze-fragmentation")
@json_path_option
@format_option
def analyze_fragmentation(json_path: Optional[str], output_format: str) -> None:
    """Analyze memory fragmentation and provide recommendations."""
    analyzer = _load_analyzer(json_path)
    _emit_issues(
        analyzer, analyzer.analyze_fragmentation(), output_format.lower(), "Fragmentation",
    )


@cli.command(name="find-large-allocations")
@json_path_option
@format_option
def find_large_allocations(json_path: Optional[str], output_format: str) -> None:
    """Identify unusually large allocations that may need optimization."""
    analyzer = _load_analyzer(json_path)
    _emit_issues(
        analyzer,
        analyzer.analyze_large_allocations(),
        output_format.lower(),
        "Large Allocations",
    )


@cli.command(name="get-all-issues")
@json_path_option
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write the full JSON report (with metadata and stats) to this file.",
)
def get_all_issues(json_path: Optional[str], output: Optional[str]) -> None:
    """Print the summary together with every leak, fragmentation and large-allocation issue."""
    analyzer = _load_analyzer(json_path)
    if output:
        ReportGenerator(analyzer, console=console).generate_report(
            format="json", output_path=output,
        )
        console.print(f"[bold green]Report saved to:[/bold green] {escape(output)}")
        return

    click.echo(json.dumps(analyzer.get_all_issues(), indent=2))


# ============================================================================
# Text reports
# ============================================================================


@cli.command(name="get-summary")
@json_path_option
def get_summary(json_path: Optional[str]) -> None:
    """Print overall memory usage including leak percentage and fragmentation."""
    analyzer = _load_analyzer(json_path)
    click.echo(analyzer.get_summary(), nl=False)


@cli.command(name="get-top-leakers")
@json_path_option
@click.option(
    "--count", "-n",
    type=int,
    default=DEFAULT_TOP_LEAKERS,
    show_default=True,
    help="Number of top leakers to return.",
)
def get_top_leakers(json_path: Optional[str], count: int) -> None:
    """Print the top N functions causing the most memory leaks."""
    analyzer = _load_analyzer(json_path)
    click.echo(analyzer.get_top_leakers(count), nl=False)


@cli.command()
@json_path_option
def stats(json_path: Optional[str]) -> None:
    """Print quick memory statistics as JSON."""
    analyzer = _load_analyzer(json_path)
    click.echo(json.dumps(analyzer.get_stats().to_dict(), indent=2))


@cli.command()
@json_path_option
def report(json_path: Optional[str]) -> None:
    """Print a full terminal report: summary panel and one table per issue category."""
    analyzer = _load_analyzer(json_path)
    ReportGenerator(analyzer, console=console).generate_report(format="terminal")


# ============================================================================
# Entry point
# ============================================================================


def main() -> None:
    """Entry point for the CLI.

    This function exists so the CLI can also be invoked via
    ``python -m mempro_analyzer.cli.main``.
    """
    cli()


if __name__ == "__main__":
    main()
