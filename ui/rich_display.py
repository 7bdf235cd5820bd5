# ui/rich_display.py
"""Render review results, diffs and progress in the terminal with Rich.

Non-goals:
    - Provide a stable API for building arbitrary dashboards.
    - Interactive editing; the CLI only shows, applies or restores.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

import config
from models import DiffKind, DiffLine, ReconciliationResult
from processing.diff_engine import render_unified
from ui.feedback_report import MULTI_SECTION_NOTE, PARTIAL_NOTE

_REMOVED_STYLE = "red"
_ADDED_STYLE = "green"
_REMOVED_WORD_STYLE = "bold red strike on #3a1010"
_ADDED_WORD_STYLE = "bold green on #103a10"


class RichDisplayManager:
    """Render review output to a shared Rich console."""

    # Shared Console singleton so log output and rendered panels interleave cleanly
    _shared_console: Console | None = None

    @classmethod
    def get_shared_console(cls) -> Console:
        """Return the process-wide Rich `Console`."""
        if cls._shared_console is None:
            cls._shared_console = Console()
        return cls._shared_console

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or self.get_shared_console()
        self.enabled = config.ENABLE_RICH_PROGRESS

    def show_progress(self, chunk_number: int, chunk_count: int) -> None:
        """Status line shown before each oracle call."""
        if not self.enabled:
            return
        if chunk_count > 1:
            self.console.print(f"[cyan]Checking grammar ({chunk_number}/{chunk_count})...[/cyan]")
        else:
            self.console.print("[cyan]Checking grammar...[/cyan]")

    def corrections_table(self, result: ReconciliationResult) -> Table:
        table = Table(title="Corrections", show_lines=True, expand=True)
        table.add_column("Issue", style="yellow", ratio=2)
        table.add_column("Location", ratio=2)
        table.add_column("Correction", style="green", ratio=3)
        for correction in result.corrections:
            table.add_row(Text(correction.issue), Text(correction.location), Text(correction.correction))
        return table

    def show_result(self, result: ReconciliationResult) -> None:
        """Print the summary, any caveats, and the correction table."""
        self.console.print(Panel(Text(result.summary), title="Overall Assessment", border_style="blue"))
        if result.chunked:
            self.console.print(f"[dim]{MULTI_SECTION_NOTE}[/dim]")
        if result.partial:
            self.console.print(f"[yellow]{PARTIAL_NOTE}[/yellow]")
        if result.failed_chunks:
            sections = ", ".join(str(i + 1) for i in result.failed_chunks)
            self.console.print(f"[yellow]Sections that could not be checked: {sections}[/yellow]")
        if result.corrections:
            self.console.print(self.corrections_table(result))
        else:
            self.console.print("[green]No corrections needed - text is well-written![/green]")

    @staticmethod
    def diff_line_texts(line: DiffLine) -> list[Text]:
        """Build the styled output rows for one diff entry."""
        if line.kind is DiffKind.SAME:
            return [Text(f"  {line.original_text}", style="dim")]
        if line.kind is DiffKind.REMOVED:
            return [Text(f"- {line.original_text}", style=_REMOVED_STYLE)]
        if line.kind is DiffKind.ADDED:
            return [Text(f"+ {line.corrected_text}", style=_ADDED_STYLE)]

        removed = Text("- ", style=_REMOVED_STYLE)
        added = Text("+ ", style=_ADDED_STYLE)
        for span in line.word_spans or []:
            if span.kind is DiffKind.SAME:
                removed.append(span.text, style=_REMOVED_STYLE)
                added.append(span.text, style=_ADDED_STYLE)
            elif span.kind is DiffKind.REMOVED:
                removed.append(span.text, style=_REMOVED_WORD_STYLE)
            elif span.kind is DiffKind.ADDED:
                added.append(span.text, style=_ADDED_WORD_STYLE)
            else:
                removed.append(span.text, style=_REMOVED_WORD_STYLE)
                added.append(span.replacement or "", style=_ADDED_WORD_STYLE)
        return [removed, added]

    def show_diff(self, lines: list[DiffLine]) -> None:
        """Print a diff preview with word-level highlighting for changed lines."""
        self.console.print("[bold]Preview: What will change[/bold]  [red]- Removed[/red] | [green]+ Added[/green]")
        for line in lines:
            for row in self.diff_line_texts(line):
                self.console.print(row)

    def show_plain_diff(self, lines: list[DiffLine]) -> None:
        """Print the diff without styling, for copying into other tools."""
        self.console.print(Text(render_unified(lines)), soft_wrap=True)
