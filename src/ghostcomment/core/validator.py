"""Read-only pre-flight check for a clean operation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ghostcomment.core.cleaner import read_lines
from ghostcomment.core.grouping import group_by_file
from ghostcomment.core.scanner import GhostComment


@dataclass
class ValidationResult:
    """Every problem that would stop a clean, collected in one pass."""

    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """True when no errors were found."""
        return not self.errors


def validate_comments_for_cleaning(
    comments: list[GhostComment],
    working_directory: Path | None = None,
) -> ValidationResult:
    """
    Check that every comment could be removed, without touching any file.

    Runs the same range and drift checks as the cleaner but keeps going after
    a failure, so the result lists every bad file and every bad comment.

    Args:
        comments: Comments that are about to be cleaned
        working_directory: Root the comment paths are relative to

    Returns:
        ValidationResult with one message per problem
    """
    root = Path(working_directory or Path.cwd()).resolve()
    result = ValidationResult()

    for file_path, file_comments in group_by_file(comments).items():
        path = root / file_path

        if not os.access(path, os.R_OK | os.W_OK):
            reason = "not found" if not path.exists() else "not readable and writable"
            result.errors.append(f"{file_path} - File access error: {reason}")
            continue

        try:
            lines = read_lines(path)
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(f"{file_path} - File access error: {e}")
            continue

        for comment in file_comments:
            index = comment.line_number - 1
            if index < 0 or index >= len(lines):
                result.errors.append(
                    f"{file_path}:{comment.line_number} - Line number out of range "
                    f"(file has {len(lines)} lines)"
                )
            elif lines[index] != comment.original_line:
                result.errors.append(
                    f"{file_path}:{comment.line_number} - Line content has changed since scanning"
                )

    return result
