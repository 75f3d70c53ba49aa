"""Cleaner for safe removal of ghost comment lines."""

from __future__ import annotations

import logging
import os
import secrets
import shutil
import stat
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console

from ghostcomment.core.grouping import group_by_file
from ghostcomment.core.scanner import GhostComment
from ghostcomment.errors import ErrorKind, GhostCommentError, file_error
from ghostcomment.ui.console import create_progress

BACKUP_MARKER = ".ghostcomment-backup-"


@dataclass
class CleanOptions:
    """Policy switches for a clean operation. Every combination is valid."""

    create_backups: bool = True
    restore_on_error: bool = True
    remove_backups: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class FileStats:
    """File metadata captured before mutation."""

    mode: int
    atime_ns: int
    mtime_ns: int


@dataclass
class CleanedFile:
    """A file handled by one clean operation."""

    file_path: str
    absolute_path: Path
    backup_path: Path | None
    comments_removed: int
    original_stats: FileStats


@dataclass
class CleanResult:
    """Aggregate outcome of ``remove_comments``."""

    files_processed: int = 0
    comments_removed: int = 0
    modified_files: list[str] = field(default_factory=list)
    error_files: list[str] = field(default_factory=list)
    restored_files: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        """Whether any file failed."""
        return bool(self.error_files)


def create_backup_path(path: Path) -> Path:
    """
    Build the sibling backup path for a file.

    Format: ``.<name>.ghostcomment-backup-<UTC timestamp>-<random>``. The
    timestamp has microsecond resolution and the random suffix keeps two
    backups taken in the same instant apart.
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    suffix = secrets.token_hex(3)
    return path.parent / f".{path.name}{BACKUP_MARKER}{timestamp}-{suffix}"


def get_file_stats(path: Path) -> FileStats:
    """
    Capture permissions and timestamps of a file.

    Raises:
        GhostCommentError: FILE_ERROR if the file cannot be stat'ed
    """
    try:
        st = path.stat()
    except OSError as e:
        raise file_error(f"Failed to get file stats for {path}", e) from e
    return FileStats(
        mode=stat.S_IMODE(st.st_mode),
        atime_ns=st.st_atime_ns,
        mtime_ns=st.st_mtime_ns,
    )


def read_lines(path: Path) -> list[str]:
    """Read a file and split it on ``\\n``, keeping any ``\\r`` in place."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read().split("\n")


def verify_comment(comment: GhostComment, lines: list[str]) -> int:
    """
    Check that a comment's line still holds the text seen at scan time.

    Returns:
        The 0-based index of the line

    Raises:
        GhostCommentError: FILE_ERROR if the line is out of range or has drifted
    """
    index = comment.line_number - 1
    if index < 0 or index >= len(lines):
        raise file_error(
            f"Comment line {comment.line_number} is out of range in {comment.file_path} "
            f"(file has {len(lines)} lines)"
        )

    actual = lines[index]
    if actual != comment.original_line:
        raise file_error(
            f"Line {comment.line_number} in {comment.file_path} has changed since scanning. "
            f'Expected: "{comment.original_line}", Found: "{actual}"'
        )
    return index


class Cleaner:
    """Removes ghost comment lines with backups and rollback."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        console: Console | None = None,
    ):
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.console = console

    def remove_comments(
        self,
        comments: list[GhostComment],
        options: CleanOptions | None = None,
        working_directory: Path | None = None,
    ) -> CleanResult:
        """
        Remove ghost comments from their files.

        Files are processed one after another. A failing file is recorded in
        ``error_files`` and the batch moves on. Once every file has been
        attempted, a failure with ``restore_on_error`` copies each backup
        taken in this batch back over its file.

        Args:
            comments: Comments to remove, as returned by the scanner
            options: Backup, rollback and dry-run policy
            working_directory: Root the comment paths are relative to

        Returns:
            CleanResult describing what happened

        Raises:
            GhostCommentError: The first file's error when no file could be
                cleaned, or FILE_ERROR for an unexpected batch-level failure
        """
        options = options or CleanOptions()
        root = Path(working_directory or Path.cwd()).resolve()

        if not comments:
            return CleanResult()

        groups = group_by_file(comments)
        result = CleanResult(files_processed=len(groups))
        cleaned: list[CleanedFile] = []
        first_error: GhostCommentError | None = None

        if options.restore_on_error and not options.create_backups and not options.dry_run:
            self.logger.warning(
                "restore_on_error is enabled without backups; "
                "files cleaned before a failure cannot be rolled back"
            )

        try:
            with create_progress(self.console, total=len(groups)) as progress:
                for file_path, file_comments in groups.items():
                    progress.describe(f"Cleaning: {file_path[-40:]}")
                    try:
                        cleaned_file = self.clean_file(file_path, file_comments, options, root)
                    except GhostCommentError as e:
                        if e.kind is not ErrorKind.FILE_ERROR:
                            raise
                        result.error_files.append(file_path)
                        result.errors[file_path] = str(e)
                        self.logger.error("Error cleaning %s: %s", file_path, e)
                        if first_error is None:
                            first_error = e
                    else:
                        cleaned.append(cleaned_file)
                        result.comments_removed += cleaned_file.comments_removed
                    progress.advance()

            if result.has_errors and options.restore_on_error and not options.dry_run:
                self.logger.warning(
                    "Errors occurred during cleaning. Restoring files from backups..."
                )
                result.restored_files = self._restore_all(cleaned)
                result.comments_removed = 0

            if options.remove_backups and not options.dry_run and not result.has_errors:
                for cleaned_file in cleaned:
                    if cleaned_file.backup_path is not None:
                        self._remove_backup(cleaned_file.backup_path)

        except Exception as e:
            # Batch-level failure: undo what this batch already wrote
            if options.restore_on_error and not options.dry_run:
                self._restore_all(cleaned)
            if isinstance(e, GhostCommentError):
                raise
            raise file_error("Failed to remove ghost comments", e) from e

        if first_error is not None and not cleaned:
            raise first_error

        restored = set(result.restored_files)
        result.modified_files = [f.file_path for f in cleaned if f.file_path not in restored]
        return result

    def clean_file(
        self,
        file_path: str,
        comments: list[GhostComment],
        options: CleanOptions,
        working_directory: Path,
    ) -> CleanedFile:
        """
        Verify and remove the given comments from one file.

        Every comment is checked against the current content before anything
        is written, so a drifted or out-of-range line leaves the file as it was.

        Raises:
            GhostCommentError: FILE_ERROR for any stat, backup, read, range,
                drift or write failure
        """
        path = Path(working_directory) / file_path

        try:
            original_stats = get_file_stats(path)

            backup_path: Path | None = None
            if options.create_backups and not options.dry_run:
                backup_path = self._create_backup(path)

            try:
                lines = read_lines(path)
                to_remove = {verify_comment(comment, lines) for comment in comments}
            except (GhostCommentError, OSError, UnicodeDecodeError):
                # Nothing written yet, so the backup is not needed
                if backup_path is not None:
                    self._remove_backup(backup_path)
                raise

            if options.dry_run:
                self.logger.info(
                    "Would remove %d ghost comment(s) from %s", len(to_remove), file_path
                )
            else:
                kept = [line for index, line in enumerate(lines) if index not in to_remove]
                try:
                    with open(path, "w", encoding="utf-8", newline="") as f:
                        f.write("\n".join(kept))
                except OSError as e:
                    # A partial write must not outlive this call
                    if backup_path is not None:
                        self._restore_file(path, backup_path, original_stats)
                    raise file_error(f"Failed to write cleaned content to {file_path}", e) from e
                self._restore_stats(path, original_stats)
                self.logger.info(
                    "Removed %d ghost comment(s) from %s", len(to_remove), file_path
                )

            return CleanedFile(
                file_path=file_path,
                absolute_path=path,
                backup_path=backup_path,
                comments_removed=len(to_remove),
                original_stats=original_stats,
            )

        except GhostCommentError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise file_error(f"Failed to clean file {file_path}", e) from e

    def _create_backup(self, path: Path) -> Path:
        """Copy a file to its backup path."""
        backup_path = create_backup_path(path)
        try:
            shutil.copy2(path, backup_path)
        except OSError as e:
            raise file_error(f"Failed to create backup for {path}", e) from e
        self.logger.debug("Backed up %s to %s", path, backup_path.name)
        return backup_path

    def _restore_stats(self, path: Path, stats: FileStats) -> None:
        """Put back permissions and timestamps. Failure is only logged."""
        try:
            os.chmod(path, stats.mode)
            os.utime(path, ns=(stats.atime_ns, stats.mtime_ns))
        except OSError as e:
            self.logger.warning("Failed to restore file stats for %s: %s", path, e)

    def _restore_all(self, cleaned: list[CleanedFile]) -> list[str]:
        """Restore every cleaned file that has a backup. Returns restored paths."""
        restored: list[str] = []
        for cleaned_file in cleaned:
            if cleaned_file.backup_path is None:
                continue
            if not self._restore_file(
                cleaned_file.absolute_path,
                cleaned_file.backup_path,
                cleaned_file.original_stats,
            ):
                continue
            restored.append(cleaned_file.file_path)
            self.logger.info("Restored %s from backup", cleaned_file.file_path)
        return restored

    def _restore_file(self, path: Path, backup_path: Path, stats: FileStats) -> bool:
        """Copy a backup over its file. Returns False (and logs) on failure."""
        try:
            shutil.copy2(backup_path, path)
        except OSError as e:
            self.logger.error("Failed to restore %s from backup %s: %s", path, backup_path, e)
            return False
        self._restore_stats(path, stats)
        return True

    def _remove_backup(self, backup_path: Path) -> None:
        """Delete a backup file. Failure is only logged."""
        try:
            backup_path.unlink()
        except OSError as e:
            self.logger.warning("Failed to remove backup %s: %s", backup_path, e)


def remove_comments(
    comments: list[GhostComment],
    options: CleanOptions | None = None,
    working_directory: Path | None = None,
    logger: logging.Logger | None = None,
) -> CleanResult:
    """Remove comments with a default Cleaner."""
    return Cleaner(logger=logger).remove_comments(comments, options, working_directory)
