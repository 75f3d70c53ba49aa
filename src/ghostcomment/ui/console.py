"""Rich console utilities for output formatting."""

from __future__ import annotations

import logging
import platform
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.text import Text

from ghostcomment import __version__


def create_console(stderr: bool = False) -> Console:
    """Create a configured Rich console."""
    # Windows-specific console settings
    if platform.system() == "Windows":
        return Console(legacy_windows=True, emoji=False, stderr=stderr)
    return Console(stderr=stderr)


def setup_logging(console: Console, verbose: bool = False) -> logging.Logger:
    """
    Route the ``ghostcomment`` logger through a RichHandler.

    Calling it again replaces the previous handler instead of stacking another.
    """
    package_logger = logging.getLogger("ghostcomment")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False
    return package_logger


def print_banner(console: Console) -> None:
    """Print the GhostComment banner."""
    banner_text = Text()
    banner_text.append("GHOST", style="bold magenta")
    banner_text.append("COMMENT", style="bold cyan")

    tagline = Text("Reviewer notes in, clean code out", style="dim italic")

    panel = Panel(
        Text.assemble(banner_text, "\n", tagline),
        border_style="blue",
        padding=(0, 2),
        subtitle=f"v{__version__}",
        subtitle_align="right",
    )

    console.print(panel)
    console.print()


def print_success(console: Console, message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_warning(console: Console, message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")


def print_error(console: Console, message: str) -> None:
    """Print an error message."""
    console.print(f"[red]{message}[/red]")


class ProgressTracker:
    """Thin wrapper so callers can report progress with or without a console."""

    def __init__(self, progress: Progress | None = None, task_id: TaskID | None = None):
        self._progress = progress
        self._task_id = task_id

    def describe(self, description: str) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, description=description)

    def advance(self) -> None:
        if self._progress is not None and self._task_id is not None:
            self._progress.advance(self._task_id)


@contextmanager
def create_progress(
    console: Console | None,
    total: int | None,
    description: str = "Working...",
) -> Iterator[ProgressTracker]:
    """
    Show a transient progress bar on ``console``.

    With no console nothing is drawn and the tracker's methods do nothing.
    """
    if console is None:
        yield ProgressTracker()
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=total)
        yield ProgressTracker(progress, task)
