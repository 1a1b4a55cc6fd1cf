"""CLI output formatters for injection results."""

from pathlib import Path
from typing import Dict, List

from rich import box
from rich.table import Table
from rich.text import Text

from ..models import InjectionResult
from ..utils.console import STATUS_SYMBOLS


class InjectionFormatter:
    """Formats injection results for the terminal."""

    def __init__(self, verbose: bool = False):
        """Initialize formatter.

        Args:
            verbose: Include files that needed no changes in the file table.
        """
        self.verbose = verbose

    def summary_line(self, result: InjectionResult) -> str:
        """One-line summary of a run."""
        verb = "would update" if result.dry_run else "updated"
        line = (
            f"{len(result.entries)} variable(s), {result.files_scanned} file(s) scanned, "
            f"{verb} {result.files_modified} file(s) "
            f"({result.total_replacements} replacement(s)) in {result.elapsed:.2f}s"
        )
        if result.errors:
            line += f", {len(result.errors)} failed"
        return line

    def file_table(self, result: InjectionResult) -> Table:
        """Table of per-file outcomes.

        Unchanged files are only listed in verbose mode.
        """
        table = Table(
            title=f"{STATUS_SYMBOLS['list']} Asset files",
            box=box.SIMPLE,
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("File", style="bold white")
        table.add_column("Replacements", justify="right")
        table.add_column("Status")

        for outcome in result.outcomes:
            if not self.verbose and not outcome.replacements and not outcome.failed:
                continue
            if outcome.failed:
                status = "[red]error[/red]"
            elif outcome.written:
                status = "[green]written[/green]"
            elif outcome.replacements:
                status = "[yellow]dry run[/yellow]"
            else:
                status = "[dim]unchanged[/dim]"
            table.add_row(
                Text(str(outcome.get_relative_path(result.root_dir))),
                str(outcome.replacements),
                status,
            )
        return table

    def scan_table(self, root: Path, found: Dict[Path, List[str]]) -> Table:
        """Table of placeholder tokens left in asset files."""
        table = Table(
            title=f"{STATUS_SYMBOLS['preview']} Unresolved placeholders",
            box=box.SIMPLE,
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("File", style="bold white")
        table.add_column("Tokens", style="yellow")
        for path, tokens in found.items():
            try:
                shown = path.relative_to(root)
            except ValueError:
                shown = path
            table.add_row(Text(str(shown)), Text(", ".join(tokens)))
        return table
