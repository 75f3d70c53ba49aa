"""Source tree scanner for ghost comments."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from rich.console import Console

from ghostcomment.config import MAX_FILE_SIZE, MAX_FILES, ScanConfig, validate_scan_config
from ghostcomment.core.enumerator import FileEnumerator, enumerate_files
from ghostcomment.errors import GhostCommentError, file_error
from ghostcomment.ui.console import create_progress


@dataclass(frozen=True)
class GhostComment:
    """A single marker line found in a source file."""

    file_path: str  # relative to the scan root, forward slashes
    line_number: int  # 1-based
    content: str
    prefix: str
    original_line: str  # verbatim, used for drift detection before removal

    @property
    def location(self) -> str:
        """Return ``path:line`` for display."""
        return f"{self.file_path}:{self.line_number}"


def format_size(size_bytes: int) -> str:
    """Convert bytes to human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def to_relative_path(path: Path, working_directory: Path) -> str:
    """
    Convert a path to the forward-slash form relative to the scan root.

    Raises:
        GhostCommentError: FILE_ERROR if ``path`` lies outside ``working_directory``
    """
    root = Path(working_directory).resolve()
    absolute = path if path.is_absolute() else root / path
    absolute = Path(os.path.normpath(absolute))
    try:
        relative = absolute.relative_to(root)
    except ValueError as e:
        raise file_error(f"File {path} is outside the working directory {root}", e) from e
    return PurePosixPath(*relative.parts).as_posix()


def extract_content(line: str, prefix: str) -> str | None:
    """
    Return the comment text after ``prefix`` or None if the line has no marker.

    The first occurrence of the prefix wins; surrounding whitespace is stripped.
    """
    index = line.find(prefix)
    if index == -1:
        return None
    return line[index + len(prefix) :].strip()


def iter_marker_lines(text: str, prefix: str) -> Iterator[tuple[int, str, str]]:
    """
    Yield ``(line_number, content, original_line)`` for each marker line.

    Lines are split on ``\\n`` only, so a trailing ``\\r`` stays part of
    ``original_line`` and the cleaner compares the exact same text.
    """
    for index, line in enumerate(text.split("\n")):
        content = extract_content(line, prefix)
        if content is not None:
            yield index + 1, content, line


class Scanner:
    """Finds ghost comments under a working directory."""

    def __init__(
        self,
        enumerator: FileEnumerator | None = None,
        logger: logging.Logger | None = None,
        max_file_size: int = MAX_FILE_SIZE,
        max_files: int = MAX_FILES,
        console: Console | None = None,
    ):
        self.enumerator = enumerator or enumerate_files
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.max_file_size = max_file_size
        self.max_files = max_files
        self.console = console

    def scan(self, config: ScanConfig, working_directory: Path) -> list[GhostComment]:
        """
        Scan every file selected by ``config`` for ghost comments.

        Args:
            config: Prefix and include/exclude patterns
            working_directory: Root the patterns and output paths are relative to

        Returns:
            Comments in file enumeration order, then line order

        Raises:
            GhostCommentError: CONFIG_ERROR for an invalid config, FILE_ERROR if
                enumeration fails or too many files match
        """
        validate_scan_config(config)
        root = Path(working_directory).resolve()

        paths = self._candidate_files(config, root)

        comments: list[GhostComment] = []
        with create_progress(self.console, total=len(paths)) as progress:
            for path in paths:
                progress.describe(f"Scanning: {path.name[:40]}")
                try:
                    comments.extend(self._scan_file(path, config.prefix, root))
                except (GhostCommentError, OSError, UnicodeDecodeError) as e:
                    self.logger.warning("Failed to scan %s: %s", path, e)
                progress.advance()

        self.logger.debug(
            "Found %d ghost comment(s) with prefix %r", len(comments), config.prefix
        )
        return comments

    def scan_single_file(
        self,
        file_path: str | Path,
        config: ScanConfig,
        working_directory: Path,
    ) -> list[GhostComment]:
        """
        Scan one file, given relative to ``working_directory`` or absolute under it.

        Unlike ``scan``, read failures are raised rather than logged.

        Raises:
            GhostCommentError: CONFIG_ERROR for an invalid config, FILE_ERROR if the
                file cannot be read or lies outside the working directory
        """
        validate_scan_config(config)
        root = Path(working_directory).resolve()
        path = Path(file_path)
        absolute = path if path.is_absolute() else root / path

        try:
            return self._scan_file(absolute, config.prefix, root)
        except GhostCommentError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise file_error(f"Failed to scan file {file_path}", e) from e

    def count_ghost_comments(self, config: ScanConfig, working_directory: Path) -> int:
        """
        Count ghost comments without keeping their text.

        Walks the same files as ``scan`` and skips unreadable files the same way,
        so memory use does not grow with the number of comments.
        """
        validate_scan_config(config)
        root = Path(working_directory).resolve()

        total = 0
        for path in self._candidate_files(config, root):
            try:
                text = self._read_text(path)
            except (GhostCommentError, OSError, UnicodeDecodeError) as e:
                self.logger.warning("Failed to count comments in %s: %s", path, e)
                continue
            for line in text.split("\n"):
                if config.prefix in line:
                    total += 1
        return total

    def _candidate_files(self, config: ScanConfig, root: Path) -> list[Path]:
        """Enumerate files and apply the whole-run file count guard."""
        try:
            paths = self.enumerator(config.include, config.exclude, root)
        except GhostCommentError:
            raise
        except Exception as e:
            raise file_error(f"Failed to find files in {root}", e) from e

        if len(paths) > self.max_files:
            raise file_error(
                f"Too many files to scan: {len(paths)} (maximum {self.max_files}). "
                "Narrow the include patterns or add exclude patterns."
            )

        self.logger.debug("Scanning %d file(s) under %s", len(paths), root)
        return paths

    def _read_text(self, path: Path) -> str:
        """Read a file as text after checking its size."""
        size = path.stat().st_size
        if size > self.max_file_size:
            raise file_error(
                f"File too large: {path} ({format_size(size)}, "
                f"maximum {format_size(self.max_file_size)})"
            )
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()

    def _scan_file(self, path: Path, prefix: str, root: Path) -> list[GhostComment]:
        """Extract ghost comments from a single file."""
        relative = to_relative_path(path, root)
        text = self._read_text(path)
        return [
            GhostComment(
                file_path=relative,
                line_number=line_number,
                content=content,
                prefix=prefix,
                original_line=line,
            )
            for line_number, content, line in iter_marker_lines(text, prefix)
        ]


def scan_files(
    config: ScanConfig,
    working_directory: Path,
    logger: logging.Logger | None = None,
) -> list[GhostComment]:
    """Scan with a default Scanner."""
    return Scanner(logger=logger).scan(config, working_directory)


def scan_single_file(
    file_path: str | Path,
    config: ScanConfig,
    working_directory: Path,
) -> list[GhostComment]:
    """Scan one file with a default Scanner."""
    return Scanner().scan_single_file(file_path, config, working_directory)


def count_ghost_comments(config: ScanConfig, working_directory: Path) -> int:
    """Count comments with a default Scanner."""
    return Scanner().count_ghost_comments(config, working_directory)
