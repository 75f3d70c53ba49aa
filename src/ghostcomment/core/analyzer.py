"""Analyzer for displaying scan and clean results."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ghostcomment.core.cleaner import CleanResult
from ghostcomment.core.grouping import group_by_file
from ghostcomment.core.scanner import GhostComment
from ghostcomment.core.validator import ValidationResult

TOP_COUNT = 20


class Analyzer:
    """Renders results on a Rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_comments(self, comments: list[GhostComment], show_all: bool = False) -> None:
        """Display scan results in a formatted table."""
        if not comments:
            self.console.print("[green]No ghost comments found.[/green]")
            return

        file_count = len({c.file_path for c in comments})
        summary = Panel(
            f"[bold]Ghost comments:[/bold] {len(comments)}\n"
            f"[bold]Files:[/bold] {file_count}",
            title="Scan Summary",
            border_style="blue",
        )
        self.console.print(summary)
        self.console.print()

        table = Table(
            title="Ghost Comments",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Location", style="cyan", overflow="fold")
        table.add_column("Comment", style="white")

        # Show top 20 or all
        comments_to_show = comments if show_all else comments[:TOP_COUNT]

        for i, comment in enumerate(comments_to_show, 1):
            table.add_row(str(i), escape(comment.location), escape(comment.content))

        self.console.print(table)

        if not show_all and len(comments) > TOP_COUNT:
            self.console.print(
                f"\n[dim]Showing {TOP_COUNT} of {len(comments)} comments. "
                f"Use --all to see everything.[/dim]"
            )

    def display_clean_preview(self, comments: list[GhostComment]) -> None:
        """Display which lines will be removed, per file."""
        groups = group_by_file(comments)

        self.console.print("\n[bold]The following lines will be removed:[/bold]\n")

        table = Table(show_header=True, header_style="bold red")
        table.add_column("File", style="cyan")
        table.add_column("Lines", justify="right", style="yellow")
        table.add_column("Line numbers", style="white")

        for file_path, file_comments in groups.items():
            numbers = sorted(c.line_number for c in file_comments)
            table.add_row(
                escape(file_path),
                str(len(file_comments)),
                ", ".join(str(n) for n in numbers),
            )

        self.console.print(table)

    def display_clean_result(self, result: CleanResult, dry_run: bool = False) -> None:
        """Display the outcome of a clean operation."""
        self.console.print()

        if dry_run:
            self.console.print(
                f"[yellow]Dry run: would remove {result.comments_removed} ghost comment(s) "
                f"from {len(result.modified_files)} file(s).[/yellow]"
            )
        elif result.comments_removed > 0:
            self.console.print(
                f"[green]Removed {result.comments_removed} ghost comment(s) "
                f"from {len(result.modified_files)} file(s).[/green]"
            )

        if result.restored_files:
            self.console.print(
                f"[yellow]Restored {len(result.restored_files)} file(s) from backup "
                "after errors.[/yellow]"
            )

        if result.has_errors:
            self.console.print(f"[red]Failed to clean {len(result.error_files)} file(s):[/red]")
            for file_path in result.error_files:
                message = result.errors.get(file_path, "")
                self.console.print(f"  [red]-[/red] {escape(file_path)}: {escape(message)}")

    def display_validation(self, result: ValidationResult) -> None:
        """Display validator findings."""
        if result.valid:
            self.console.print("[green]All ghost comments can be removed safely.[/green]")
            return

        self.console.print(f"[red]Found {len(result.errors)} problem(s):[/red]")
        for error in result.errors:
            self.console.print(f"  [red]-[/red] {escape(error)}")
