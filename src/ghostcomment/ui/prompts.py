"""Interactive prompts for user input."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from InquirerPy import inquirer
from InquirerPy.base.control import Choice

if TYPE_CHECKING:
    from ghostcomment.core.scanner import GhostComment


def confirm_clean(comment_count: int, file_count: int) -> bool:
    """
    Prompt user to confirm removal of ghost comments.

    Args:
        comment_count: Number of comment lines to be removed
        file_count: Number of files that will be rewritten

    Returns:
        True if user confirms, False otherwise
    """
    return typer.confirm(
        f"\nRemove {comment_count} ghost comment(s) from {file_count} file(s)?",
        default=False,
    )


def select_files(groups: dict[str, list["GhostComment"]]) -> list[str]:
    """
    Let user interactively pick which files to clean.

    Args:
        groups: Comments grouped by relative file path

    Returns:
        Selected file paths, in the order shown
    """
    choices = [
        Choice(
            value=file_path,
            name=f"{len(comments):>4} comment(s) | {file_path}",
            enabled=True,
        )
        for file_path, comments in groups.items()
    ]

    selected = inquirer.checkbox(
        message="Select files to clean (Space to toggle, Enter to confirm):",
        choices=choices,
        cycle=True,
    ).execute()

    return selected or []
