"""Tests for glob-based file enumeration."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from ghostcomment.core.enumerator import compile_glob, enumerate_files, expand_braces, matches_any


class TestExpandBraces:
    """Tests for brace expansion."""

    def test_simple(self):
        assert expand_braces("**/*.{js,ts}") == ["**/*.js", "**/*.ts"]

    def test_multiple_groups(self):
        assert expand_braces("{a,b}/*.{x,y}") == ["a/*.x", "a/*.y", "b/*.x", "b/*.y"]

    def test_nested(self):
        assert expand_braces("*.{c,{h,hpp}}") == ["*.c", "*.h", "*.hpp"]

    def test_no_alternation_kept(self):
        assert expand_braces("*.{js}") == ["*.{js}"]
        assert expand_braces("*.{js") == ["*.{js"]


class TestMatchesAny:
    """Tests for glob matching against relative paths."""

    @pytest.mark.parametrize(
        "path",
        ["main.py", "pkg/main.py", "a/b/c/main.py"],
    )
    def test_double_star_prefix_matches_any_depth(self, path):
        assert matches_any(path, ["**/*.py"])

    def test_single_star_stays_in_segment(self):
        assert matches_any("main.py", ["*.py"])
        assert not matches_any("pkg/main.py", ["*.py"])

    def test_trailing_double_star(self):
        patterns = ["**/node_modules/**"]
        assert matches_any("node_modules", patterns)
        assert matches_any("web/node_modules/lib/index.js", patterns)
        assert not matches_any("web/node_modules_old/index.js", patterns)

    def test_braces_and_classes(self):
        assert matches_any("src/app.tsx", ["**/*.{js,ts,tsx,jsx}"])
        assert matches_any("x1.c", ["x[0-9].c"])
        assert not matches_any("xa.c", ["x[!a-z].c"])

    def test_question_mark(self):
        assert matches_any("a.h", ["?.h"])
        assert not matches_any("ab.h", ["?.h"])

    def test_leading_dot_slash_ignored(self):
        assert compile_glob("./src/*.go").fullmatch("src/main.go")

    def test_patterns_match_dotfile_names(self):
        assert matches_any(".eslintrc.js", ["**/*.js"])


class TestEnumerateFiles:
    """Tests for enumerate_files."""

    def test_include_and_exclude(self, mock_project: Path):
        files = enumerate_files(["**/*.{js,ts}"], ["**/node_modules/**"], mock_project)
        relative = [p.relative_to(mock_project).as_posix() for p in files]
        assert relative == ["src/app.ts", "src/util.js"]
        assert all(p.is_absolute() for p in files)

    def test_sorted_by_relative_path(self, temp_dir: Path):
        for name in ["b.py", "a/z.py", "a.py", "a/b/c.py"]:
            path = temp_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")
        files = enumerate_files(["**/*.py"], [], temp_dir)
        relative = [p.relative_to(temp_dir).as_posix() for p in files]
        assert relative == sorted(relative)
        assert len(relative) == 4

    def test_file_level_exclude(self, temp_dir: Path):
        (temp_dir / "app.js").write_text("")
        (temp_dir / "app.min.js").write_text("")
        files = enumerate_files(["**/*.js"], ["**/*.min.js"], temp_dir)
        assert [p.name for p in files] == ["app.js"]

    def test_symlinks_skipped(self, temp_dir: Path):
        (temp_dir / "real.py").write_text("")
        try:
            os.symlink(temp_dir / "real.py", temp_dir / "link.py")
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        files = enumerate_files(["**/*.py"], [], temp_dir)
        assert [p.name for p in files] == ["real.py"]

    def test_hidden_entries_skipped(self, temp_dir: Path):
        hidden = temp_dir / ".venv" / "lib" / "site-packages" / "pkg"
        hidden.mkdir(parents=True)
        (hidden / "mod.py").write_text("")
        (temp_dir / ".hidden.py").write_text("")
        (temp_dir / "app.py").write_text("")

        files = enumerate_files(["**/*.py"], [], temp_dir)

        assert [p.relative_to(temp_dir).as_posix() for p in files] == ["app.py"]

    def test_dot_opt_in(self, temp_dir: Path):
        (temp_dir / ".tox").mkdir()
        (temp_dir / ".tox" / "run.py").write_text("")
        (temp_dir / "app.py").write_text("")

        files = enumerate_files(["**/*.py"], [], temp_dir, dot=True)

        assert [p.relative_to(temp_dir).as_posix() for p in files] == [".tox/run.py", "app.py"]

    def test_missing_root_raises(self, temp_dir: Path):
        with pytest.raises(OSError):
            enumerate_files(["**/*.py"], [], temp_dir / "missing")
