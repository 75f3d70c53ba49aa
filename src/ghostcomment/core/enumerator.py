"""Expand include/exclude glob patterns into a list of files."""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Sequence
from functools import lru_cache
from pathlib import Path

# Signature shared by every enumerator the scanner accepts
FileEnumerator = Callable[[Sequence[str], Sequence[str], Path], list[Path]]


def expand_braces(pattern: str) -> list[str]:
    """
    Expand ``{a,b}`` alternatives in a glob pattern.

    Nested groups are expanded recursively. A brace without a matching close
    or without a comma is kept literally.

    Examples:
        "**/*.{js,ts}" -> ["**/*.js", "**/*.ts"]
    """
    depth = 0
    start = -1
    for i, char in enumerate(pattern):
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                options = _split_top_level(pattern[start + 1 : i])
                if len(options) < 2:
                    # Not an alternation, keep the braces and look further on
                    head = pattern[: i + 1]
                    return [head + rest for rest in expand_braces(pattern[i + 1 :])]
                prefix, suffix = pattern[:start], pattern[i + 1 :]
                expanded: list[str] = []
                for option in options:
                    expanded.extend(expand_braces(prefix + option + suffix))
                return expanded
    return [pattern]


def _split_top_level(body: str) -> list[str]:
    """Split a brace body on commas that are not inside nested braces."""
    parts: list[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    parts.append(current)
    return parts


def _translate(pattern: str) -> str:
    """Translate one brace-free glob into a regular expression body."""
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "*":
            if pattern.startswith("**", i):
                at_segment_start = i == 0 or pattern[i - 1] == "/"
                after = i + 2
                if at_segment_start and after < n and pattern[after] == "/":
                    # "**/" matches zero or more leading directories
                    out.append("(?:.*/)?")
                    i = after + 1
                    continue
                if at_segment_start and after == n and out and out[-1] == "/":
                    # trailing "/**" matches the directory itself or anything below
                    out[-1] = "(?:/.*)?"
                    i = after
                    continue
                out.append(".*")
                i = after
                continue
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body.replace("\\", "\\\\") + "]")
                i = end
        elif char == "/":
            out.append("/")
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


@lru_cache(maxsize=256)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """
    Compile a glob pattern to a regex matched against relative POSIX paths.

    Supports ``*``, ``?``, ``[...]``, ``**`` (any number of directories) and
    ``{a,b}`` alternatives.
    """
    normalized = pattern.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    alternatives = [_translate(p) for p in expand_braces(normalized)]
    return re.compile("(?:" + "|".join(alternatives) + ")")


def matches_any(relative_path: str, patterns: Sequence[str]) -> bool:
    """Check if a relative POSIX path matches any of the glob patterns."""
    return any(compile_glob(p).fullmatch(relative_path) for p in patterns)


def enumerate_files(
    include: Sequence[str],
    exclude: Sequence[str],
    root: Path,
    dot: bool = False,
) -> list[Path]:
    """
    Walk ``root`` and return absolute paths of files matching the patterns.

    Directories matching an exclude pattern are pruned without descending.
    Files and directories whose name starts with ``.`` are skipped at every
    depth unless ``dot`` is set, so ``.venv`` or ``.git`` are never walked.
    Symlinks are not followed. Unreadable subdirectories are skipped.

    Args:
        include: Glob patterns a file must match (at least one)
        exclude: Glob patterns that remove a file or directory
        root: Directory the patterns are relative to
        dot: Also walk hidden files and directories

    Returns:
        Absolute paths sorted by their relative path

    Raises:
        OSError: If ``root`` itself cannot be listed
    """
    root = Path(root).resolve()
    found: list[tuple[str, Path]] = []

    # The root listing must succeed; failures below it are tolerated
    with os.scandir(root) as entries:
        top = list(entries)

    _walk(top, "", include, exclude, found, dot)

    found.sort(key=lambda item: item[0])
    return [path for _, path in found]


def _walk(
    entries: list[os.DirEntry[str]],
    relative_dir: str,
    include: Sequence[str],
    exclude: Sequence[str],
    found: list[tuple[str, Path]],
    dot: bool,
) -> None:
    """Recursively collect matching files from already-listed entries."""
    for entry in entries:
        if not dot and entry.name.startswith("."):
            continue
        relative = f"{relative_dir}{entry.name}"
        try:
            if entry.is_symlink():
                continue

            if entry.is_dir(follow_symlinks=False):
                if matches_any(relative, exclude):
                    continue
                try:
                    with os.scandir(entry.path) as sub_entries:
                        children = list(sub_entries)
                except (PermissionError, OSError):
                    continue
                _walk(children, relative + "/", include, exclude, found, dot)

            elif entry.is_file(follow_symlinks=False):
                if matches_any(relative, include) and not matches_any(relative, exclude):
                    found.append((relative, Path(entry.path)))

        except (PermissionError, OSError):
            continue
