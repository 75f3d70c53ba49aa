"""Core scanning and cleaning functionality."""

from __future__ import annotations

from .analyzer import Analyzer
from .cleaner import Cleaner, CleanOptions, CleanResult
from .grouping import group_by_file
from .scanner import GhostComment, Scanner
from .validator import ValidationResult, validate_comments_for_cleaning

__all__ = [
    "Scanner",
    "Cleaner",
    "Analyzer",
    "GhostComment",
    "CleanOptions",
    "CleanResult",
    "ValidationResult",
    "group_by_file",
    "validate_comments_for_cleaning",
]
