"""Tests for the cleaner module."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from ghostcomment.config import ScanConfig
from ghostcomment.core.cleaner import (
    BACKUP_MARKER,
    Cleaner,
    CleanOptions,
    CleanResult,
    create_backup_path,
    get_file_stats,
    remove_comments,
    verify_comment,
)
from ghostcomment.core.scanner import GhostComment, Scanner
from ghostcomment.errors import ErrorKind, GhostCommentError

APP_CLEANED = (
    "import { run } from './run';\n"
    "\n"
    "export function main() {\n"
    "  run();\n"
    "  return 0;\n"
    "}\n"
)
UTIL_CLEANED = "function helper() {\n}\n"


def _backups(directory: Path) -> list[Path]:
    return sorted(p for p in directory.iterdir() if BACKUP_MARKER in p.name)


def _snapshot(project: Path) -> dict[str, bytes]:
    return {
        p.relative_to(project).as_posix(): p.read_bytes()
        for p in project.rglob("*")
        if p.is_file()
    }


class TestHelpers:
    """Tests for module-level helpers."""

    def test_backup_path_is_hidden_sibling(self, temp_dir: Path):
        path = temp_dir / "app.ts"
        backup = create_backup_path(path)
        assert backup.parent == temp_dir
        assert backup.name.startswith(".app.ts" + BACKUP_MARKER)

    def test_backup_paths_unique(self, temp_dir: Path):
        path = temp_dir / "app.ts"
        assert create_backup_path(path) != create_backup_path(path)

    def test_file_stats(self, temp_dir: Path):
        path = temp_dir / "a.py"
        path.write_text("x")
        path.chmod(0o640)
        stats = get_file_stats(path)
        assert stats.mode == 0o640
        assert stats.mtime_ns == path.stat().st_mtime_ns

    def test_file_stats_missing(self, temp_dir: Path):
        with pytest.raises(GhostCommentError, match="Failed to get file stats") as exc_info:
            get_file_stats(temp_dir / "missing.py")
        assert exc_info.value.kind is ErrorKind.FILE_ERROR

    def test_verify_comment_ok(self):
        comment = GhostComment("a.py", 2, "x", "#_gc_", "#_gc_ x")
        assert verify_comment(comment, ["a", "#_gc_ x", "b"]) == 1

    @pytest.mark.parametrize("line_number", [0, 4])
    def test_verify_comment_out_of_range(self, line_number):
        comment = GhostComment("a.py", line_number, "x", "#_gc_", "#_gc_ x")
        with pytest.raises(GhostCommentError, match="out of range"):
            verify_comment(comment, ["a", "b", "c"])

    def test_verify_comment_drift(self):
        comment = GhostComment("a.py", 1, "x", "#_gc_", "#_gc_ x")
        with pytest.raises(GhostCommentError) as exc_info:
            verify_comment(comment, ["#_gc_ y"])
        message = str(exc_info.value)
        assert "has changed since scanning" in message
        assert 'Expected: "#_gc_ x"' in message
        assert 'Found: "#_gc_ y"' in message


class TestRemoveComments:
    """Tests for Cleaner.remove_comments."""

    def _scan(self, project: Path, config: ScanConfig) -> list[GhostComment]:
        return Scanner().scan(config, project)

    def test_empty_input(self, temp_dir: Path):
        result = Cleaner().remove_comments([], CleanOptions(), temp_dir)
        assert result == CleanResult()
        assert not result.has_errors

    def test_round_trip(self, mock_project: Path, scan_config: ScanConfig):
        comments = self._scan(mock_project, scan_config)

        result = Cleaner().remove_comments(
            comments, CleanOptions(create_backups=False), mock_project
        )

        assert result.files_processed == 2
        assert result.comments_removed == 3
        assert result.modified_files == ["src/app.ts", "src/util.js"]
        assert not result.has_errors
        assert (mock_project / "src" / "app.ts").read_text() == APP_CLEANED
        assert (mock_project / "src" / "util.js").read_text() == UTIL_CLEANED
        assert self._scan(mock_project, scan_config) == []
        assert _backups(mock_project / "src") == []

    def test_crlf_preserved(self, temp_dir: Path):
        path = temp_dir / "win.py"
        path.write_bytes(b"a = 1\r\n#_gc_ drop\r\nb = 2\r\n")
        config = ScanConfig(prefix="#_gc_", include=["**/*.py"], exclude=[])
        comments = Scanner().scan(config, temp_dir)

        Cleaner().remove_comments(comments, CleanOptions(create_backups=False), temp_dir)

        assert path.read_bytes() == b"a = 1\r\nb = 2\r\n"

    def test_backups_created(self, mock_project: Path, scan_config: ScanConfig):
        original = (mock_project / "src" / "app.ts").read_bytes()
        comments = self._scan(mock_project, scan_config)

        Cleaner().remove_comments(comments, CleanOptions(), mock_project)

        backups = _backups(mock_project / "src")
        assert len(backups) == 2
        app_backup = next(b for b in backups if b.name.startswith(".app.ts"))
        assert app_backup.read_bytes() == original

    def test_remove_backups_after_success(self, mock_project: Path, scan_config: ScanConfig):
        comments = self._scan(mock_project, scan_config)

        result = Cleaner().remove_comments(
            comments, CleanOptions(remove_backups=True), mock_project
        )

        assert result.comments_removed == 3
        assert _backups(mock_project / "src") == []

    def test_permissions_and_mtime_preserved(self, mock_project: Path, scan_config: ScanConfig):
        path = mock_project / "src" / "app.ts"
        path.chmod(0o640)
        os.utime(path, ns=(1_600_000_000_000_000_000, 1_600_000_000_000_000_000))
        comments = self._scan(mock_project, scan_config)

        Cleaner().remove_comments(comments, CleanOptions(create_backups=False), mock_project)

        st = path.stat()
        assert stat.S_IMODE(st.st_mode) == 0o640
        assert st.st_mtime_ns == 1_600_000_000_000_000_000

    def test_dry_run_writes_nothing(self, mock_project: Path, scan_config: ScanConfig, caplog):
        before = _snapshot(mock_project)
        comments = self._scan(mock_project, scan_config)

        with caplog.at_level(logging.INFO, logger="ghostcomment"):
            result = Cleaner().remove_comments(
                comments, CleanOptions(dry_run=True), mock_project
            )

        assert result.comments_removed == 3
        assert not result.has_errors
        assert _snapshot(mock_project) == before
        assert "Would remove" in caplog.text

    def test_dry_run_still_detects_drift(self, mock_project: Path, scan_config: ScanConfig):
        comments = self._scan(mock_project, scan_config)
        (mock_project / "src" / "app.ts").write_text("rewritten\n" * 10)

        result = Cleaner().remove_comments(comments, CleanOptions(dry_run=True), mock_project)

        assert result.error_files == ["src/app.ts"]
        assert result.modified_files == ["src/util.js"]

    def test_single_file_drift_raises(self, mock_project: Path, scan_config: ScanConfig):
        comments = [c for c in self._scan(mock_project, scan_config) if c.file_path == "src/app.ts"]
        path = mock_project / "src" / "app.ts"
        drifted = path.read_text().replace("Removed unused", "Deleted unused")
        path.write_text(drifted)

        with pytest.raises(GhostCommentError) as exc_info:
            Cleaner().remove_comments(comments, CleanOptions(), mock_project)

        assert exc_info.value.kind is ErrorKind.FILE_ERROR
        assert "has changed since scanning" in str(exc_info.value)
        assert "Expected:" in str(exc_info.value)
        assert path.read_text() == drifted
        assert _backups(mock_project / "src") == []

    def test_out_of_range_raises(self, mock_project: Path):
        comment = GhostComment("src/app.ts", 99, "x", "//_gc_", "//_gc_ x")
        before = (mock_project / "src" / "app.ts").read_bytes()

        with pytest.raises(GhostCommentError, match="out of range"):
            Cleaner().remove_comments([comment], CleanOptions(), mock_project)

        assert (mock_project / "src" / "app.ts").read_bytes() == before

    def test_missing_file_raises(self, temp_dir: Path):
        comment = GhostComment("gone.py", 1, "x", "#_gc_", "#_gc_ x")
        with pytest.raises(GhostCommentError) as exc_info:
            Cleaner().remove_comments([comment], CleanOptions(), temp_dir)
        assert exc_info.value.kind is ErrorKind.FILE_ERROR

    def test_failure_restores_earlier_files(
        self, mock_project: Path, scan_config: ScanConfig, caplog
    ):
        app = mock_project / "src" / "app.ts"
        app.chmod(0o640)
        original = app.read_bytes()
        comments = self._scan(mock_project, scan_config)
        # util.js drifts after the scan, so it fails after app.ts was cleaned
        util = mock_project / "src" / "util.js"
        util.write_text(util.read_text().replace("magic number", "changed"))

        with caplog.at_level(logging.INFO, logger="ghostcomment"):
            result = Cleaner().remove_comments(comments, CleanOptions(), mock_project)

        assert result.has_errors
        assert result.error_files == ["src/util.js"]
        assert "has changed since scanning" in result.errors["src/util.js"]
        assert result.restored_files == ["src/app.ts"]
        assert result.modified_files == []
        assert result.comments_removed == 0
        assert app.read_bytes() == original
        assert stat.S_IMODE(app.stat().st_mode) == 0o640
        assert "Restoring files from backups" in caplog.text
        backups = _backups(mock_project / "src")
        assert [p.name.split(BACKUP_MARKER)[0] for p in backups] == [".app.ts"]

    def test_out_of_range_second_file_rolls_back(self, temp_dir: Path):
        first = temp_dir / "first.py"
        first.write_text("a = 1\n#_gc_ drop me\n")
        first.chmod(0o600)
        (temp_dir / "second.py").write_text("x\ny\nz")
        before = first.read_bytes()
        comments = [
            GhostComment("first.py", 2, "drop me", "#_gc_", "#_gc_ drop me"),
            GhostComment("second.py", 100, "gone", "#_gc_", "#_gc_ gone"),
        ]

        with patch("ghostcomment.core.cleaner.shutil.copy2", wraps=shutil.copy2) as copy:
            result = Cleaner().remove_comments(
                comments,
                CleanOptions(create_backups=True, restore_on_error=True),
                temp_dir,
            )

        assert result.has_errors
        assert len(result.error_files) == 1
        assert "out of range" in result.errors["second.py"]
        assert first.read_bytes() == before
        assert stat.S_IMODE(first.stat().st_mode) == 0o600
        restore_calls = [c for c in copy.call_args_list if Path(c.args[1]) == first]
        assert len(restore_calls) == 1
        assert BACKUP_MARKER in Path(restore_calls[0].args[0]).name

    def test_failure_without_restore_keeps_progress(
        self, mock_project: Path, scan_config: ScanConfig
    ):
        comments = self._scan(mock_project, scan_config)
        util = mock_project / "src" / "util.js"
        util.write_text("")

        result = Cleaner().remove_comments(
            comments, CleanOptions(restore_on_error=False), mock_project
        )

        assert result.error_files == ["src/util.js"]
        assert result.modified_files == ["src/app.ts"]
        assert result.restored_files == []
        assert (mock_project / "src" / "app.ts").read_text() == APP_CLEANED

    def test_restore_without_backups_warns(
        self, mock_project: Path, scan_config: ScanConfig, caplog
    ):
        comments = self._scan(mock_project, scan_config)

        with caplog.at_level(logging.WARNING):
            result = Cleaner().remove_comments(
                comments,
                CleanOptions(create_backups=False, restore_on_error=True),
                mock_project,
            )

        assert result.comments_removed == 3
        assert "without backups" in caplog.text

    def test_backup_failure_isolated_per_file(
        self, mock_project: Path, scan_config: ScanConfig
    ):
        comments = self._scan(mock_project, scan_config)
        util = mock_project / "src" / "util.js"
        original = util.read_bytes()
        real_copy = shutil.copy2

        def copy(src, dst, *args, **kwargs):
            if Path(src) == util:
                raise OSError("No space left on device")
            return real_copy(src, dst, *args, **kwargs)

        with patch("ghostcomment.core.cleaner.shutil.copy2", side_effect=copy):
            result = Cleaner().remove_comments(
                comments, CleanOptions(restore_on_error=False), mock_project
            )

        assert result.error_files == ["src/util.js"]
        assert "Failed to create backup" in result.errors["src/util.js"]
        assert result.modified_files == ["src/app.ts"]
        assert util.read_bytes() == original

    def test_stat_restore_failure_only_warns(
        self, mock_project: Path, scan_config: ScanConfig, caplog
    ):
        comments = self._scan(mock_project, scan_config)

        with patch("ghostcomment.core.cleaner.os.utime", side_effect=OSError("read-only")):
            with caplog.at_level(logging.WARNING):
                result = Cleaner().remove_comments(
                    comments, CleanOptions(create_backups=False), mock_project
                )

        assert not result.has_errors
        assert result.comments_removed == 3
        assert (mock_project / "src" / "app.ts").read_text() == APP_CLEANED
        assert "Failed to restore file stats" in caplog.text

    def test_unexpected_error_restores_and_wraps(
        self, mock_project: Path, scan_config: ScanConfig
    ):
        app = mock_project / "src" / "app.ts"
        original = app.read_bytes()
        comments = self._scan(mock_project, scan_config)
        real_clean_file = Cleaner.clean_file
        calls: list[str] = []

        def flaky(self, file_path, *args):
            calls.append(file_path)
            if len(calls) == 2:
                raise RuntimeError("disk vanished")
            return real_clean_file(self, file_path, *args)

        cleaner = Cleaner()
        cleaner.clean_file = flaky.__get__(cleaner)

        with pytest.raises(GhostCommentError, match="Failed to remove ghost comments") as exc_info:
            cleaner.remove_comments(comments, CleanOptions(), mock_project)

        assert exc_info.value.kind is ErrorKind.FILE_ERROR
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert app.read_bytes() == original

    def test_injected_logger(self, mock_project: Path, scan_config: ScanConfig, caplog):
        comments = self._scan(mock_project, scan_config)
        logger = logging.getLogger("ghostcomment.test.cleaner")

        with caplog.at_level(logging.INFO, logger="ghostcomment.test.cleaner"):
            remove_comments(
                comments,
                CleanOptions(create_backups=False),
                mock_project,
                logger=logger,
            )

        assert any(r.name == "ghostcomment.test.cleaner" for r in caplog.records)
        assert "Removed 1 ghost comment(s) from src/app.ts" in caplog.text
