"""Report generation for memory analysis results.

Renders issue lists and the analysis summary to the terminal with Rich, and
exports the full analysis (summary plus every issue list) as structured JSON
for downstream tooling.
"""

from __future__ import annotations

import datetime
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mempro_analyzer.analysis.issues import MemoryIssue, Severity, issues_to_json
from mempro_analyzer.analysis.memory_analyzer import MemoryAnalyzer

logger = logging.getLogger(__name__)


# ============================================================================
# Color coding
# ============================================================================

_SEVERITY_STYLES: Dict[str, str] = {
    Severity.critical.value: "bold red",
    Severity.high.value: "red",
    Severity.medium.value: "yellow",
    Severity.low.value: "green",
}


def _severity_style(severity: str) -> str:
    """Return a Rich style for the given severity label."""
    return _SEVERITY_STYLES.get(severity, "dim")


def _format_bytes(size: int) -> str:
    """Format a byte count to a human-readable string."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.2f} GB"


def _format_location(issue: MemoryIssue) -> str:
    if not issue.file_name:
        return "-"
    return f"{issue.file_name}:{issue.line_number}"


def render_issues_json(issues: Sequence[MemoryIssue]) -> str:
    """Return *issues* as the indented JSON array sent back to callers."""
    return issues_to_json(issues, indent=2)


# ============================================================================
# Report Generator
# ============================================================================


class ReportGenerator:
    """Render memory analysis results as terminal output or JSON files.

    Usage::

        generator = ReportGenerator(MemoryAnalyzer.from_file("session.json"))
        generator.generate_report(format="terminal")
        generator.generate_report(format="json", output_path="issues.json")
    """

    def __init__(self, analyzer: MemoryAnalyzer, console: Optional[Console] = None) -> None:
        self._analyzer = analyzer
        self._console = console or Console()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_report(
        self,
        format: str = "terminal",
        output_path: Optional[str] = None,
    ) -> Optional[str]:
        """Dispatch to the appropriate report generation method.

        Parameters
        ----------
        format:
            One of ``"terminal"`` or ``"json"``.
        output_path:
            File path for JSON output.  Ignored for terminal format.

        Returns
        -------
        str | None
            The output file path for JSON, or ``None`` for terminal.

        Raises
        ------
        ValueError
            If *format* is not recognised.
        """
        fmt = format.lower().strip()
        if fmt == "terminal":
            self.generate_terminal_report()
            return None
        elif fmt == "json":
            if output_path is None:
                output_path = "mempro_analysis_report.json"
            self.generate_json_report(output_path)
            return output_path
        else:
            raise ValueError(
                f"Unknown report format {fmt!r}. "
                f"Expected one of: 'terminal', 'json'."
            )

    # ==================================================================
    # Terminal report
    # ==================================================================

    def generate_terminal_report(self) -> None:
        """Print the summary panel followed by one table per issue category."""
        console = self._console

        header = Text()
        header.append("MemPro Analyzer", style="bold magenta")
        header.append(" - Memory Issue Report", style="bold white")
        console.print()
        console.print(Panel(header, border_style="magenta", padding=(1, 2)))

        console.print(
            Panel(
                Text(self._analyzer.get_summary().rstrip("\n")),
                title="[bold]Summary[/bold]",
                border_style="cyan",
                padding=(1, 2),
            )
        )
        console.print()

        sections = [
            ("Memory Leaks", self._analyzer.analyze_leaks()),
            ("Fragmentation", self._analyzer.analyze_fragmentation()),
            ("Large Allocations", self._analyzer.analyze_large_allocations()),
        ]
        for title, issues in sections:
            self.print_issues_table(issues, title=title)
            console.print()

    def print_issues_table(self, issues: Sequence[MemoryIssue], title: str = "Issues") -> None:
        """Print *issues* as a colour-coded Rich table."""
        console = self._console
        if not issues:
            console.print(f"[dim]{title}: no issues found.[/dim]")
            return

        table = Table(
            title=f"{title} ({len(issues)})",
            box=box.ROUNDED,
            show_lines=True,
            title_style="bold white",
        )
        table.add_column("#", style="dim", width=3)
        table.add_column("Severity", justify="center", min_width=8)
        table.add_column("Function", style="bold", min_width=16, max_width=40)
        table.add_column("Location", min_width=12, max_width=40)
        table.add_column("Size", justify="right", min_width=9)
        table.add_column("Count", justify="right", min_width=6)
        table.add_column("Description", min_width=30, max_width=50)
        table.add_column("Suggestion", min_width=30, max_width=50)

        for i, issue in enumerate(issues, start=1):
            suggestion = issue.suggestion
            if len(suggestion) > 120:
                suggestion = suggestion[:117] + "..."

            table.add_row(
                str(i),
                Text(issue.severity or "-", style=_severity_style(issue.severity)),
                issue.function_name or "-",
                _format_location(issue),
                _format_bytes(issue.size),
                str(issue.count),
                issue.description,
                suggestion,
            )

        console.print(table)

    # ==================================================================
    # JSON report
    # ==================================================================

    def build_json_report(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "metadata": {
                "tool": "mempro-analyzer",
                "report_generated": datetime.datetime.now().isoformat(),
                "format_version": "1.0",
            },
            "stats": self._analyzer.get_stats().to_dict(),
        }
        data.update(self._analyzer.get_all_issues())
        return data

    def generate_json_report(self, output_path: str) -> None:
        """Write the summary, statistics, and every issue list to *output_path*."""
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(
            json.dumps(self.build_json_report(), indent=2, default=str),
            encoding="utf-8",
        )
        logger.info("JSON report written to %s", output_path)
