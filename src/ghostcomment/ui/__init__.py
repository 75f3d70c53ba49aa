"""UI components for console output and prompts."""

from __future__ import annotations

from .console import create_console, create_progress, print_banner, setup_logging
from .prompts import confirm_clean, select_files

__all__ = [
    "create_console",
    "create_progress",
    "print_banner",
    "setup_logging",
    "confirm_clean",
    "select_files",
]
