"""Group ghost comments by the file they belong to."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ghostcomment.core.scanner import GhostComment


def group_by_file(comments: Iterable[GhostComment]) -> dict[str, list[GhostComment]]:
    """
    Partition comments by ``file_path``.

    Files keep the order in which they were first seen. Within a file the
    comments are sorted by descending line number, so a caller removing lines
    one at a time from the bottom up never shifts a line it has yet to remove.

    Args:
        comments: Comments in any order

    Returns:
        Mapping of relative file path to its comments, highest line first
    """
    grouped: dict[str, list[GhostComment]] = {}
    for comment in comments:
        grouped.setdefault(comment.file_path, []).append(comment)

    for file_comments in grouped.values():
        file_comments.sort(key=lambda c: c.line_number, reverse=True)

    return grouped
