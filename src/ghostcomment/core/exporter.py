"""Export scan and clean results to JSON and CSV formats."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from ghostcomment.core.scanner import GhostComment
from ghostcomment.errors import file_error

if TYPE_CHECKING:
    from ghostcomment.core.cleaner import CleanResult

ExportFormat = Literal["json", "csv"]

COMMENT_FIELDS = [f.name for f in fields(GhostComment)]


def _comment_to_dict(comment: GhostComment) -> dict[str, Any]:
    """Convert GhostComment to serializable dict."""
    return asdict(comment)


def comments_to_dict(
    comments: list[GhostComment],
    root_path: Path,
    prefix: str,
) -> dict[str, Any]:
    """
    Convert a scan to a serializable dict.

    This is the hand-off format for the comment-posting step: each entry's
    ``file_path``/``line_number``/``content`` becomes one review comment.
    """
    return {
        "type": "scan",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "root_path": str(root_path),
        "prefix": prefix,
        "comment_count": len(comments),
        "file_count": len({c.file_path for c in comments}),
        "comments": [_comment_to_dict(c) for c in comments],
    }


def clean_result_to_dict(result: CleanResult) -> dict[str, Any]:
    """Convert CleanResult to serializable dict."""
    return {
        "type": "clean",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "files_processed": result.files_processed,
        "comments_removed": result.comments_removed,
        "modified_files": result.modified_files,
        "error_files": result.error_files,
        "restored_files": result.restored_files,
        "errors": result.errors,
        "has_errors": result.has_errors,
    }


def export_json(
    comments: list[GhostComment],
    output_path: Path,
    *,
    root_path: Path,
    prefix: str,
    indent: int = 2,
) -> None:
    """
    Export scan results to JSON file.

    Args:
        comments: Comments found by the scanner
        output_path: Path to write JSON file
        root_path: Directory the comment paths are relative to
        prefix: Marker token used for the scan
        indent: JSON indentation level (default: 2)
    """
    data = comments_to_dict(comments, root_path, prefix)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)


def export_clean_result(result: CleanResult, output_path: Path, indent: int = 2) -> None:
    """Write a clean report to a JSON file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(clean_result_to_dict(result), f, indent=indent, ensure_ascii=False)


def export_csv(comments: list[GhostComment], output_path: Path) -> None:
    """Export scan results to CSV file, one row per comment."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=COMMENT_FIELDS)
        writer.writeheader()
        for comment in comments:
            writer.writerow(_comment_to_dict(comment))


def export_result(
    comments: list[GhostComment],
    output_path: Path,
    format: ExportFormat = "json",
    *,
    root_path: Path,
    prefix: str,
) -> None:
    """
    Export scan results to file in specified format.

    Raises:
        ValueError: If format is not supported
    """
    if format == "json":
        export_json(comments, output_path, root_path=root_path, prefix=prefix)
    elif format == "csv":
        export_csv(comments, output_path)
    else:
        raise ValueError(f"Unsupported export format: {format}")


def load_comments(input_path: Path) -> list[GhostComment]:
    """
    Read comments back from a JSON export.

    Lets a clean run act on exactly the comments that were posted, even if
    the tree has gained new markers since.

    Raises:
        GhostCommentError: FILE_ERROR if the file is unreadable or malformed
    """
    try:
        with open(input_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise file_error(f"Failed to read comment export {input_path}", e) from e

    entries = data.get("comments") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise file_error(f"{input_path} is not a ghostcomment scan export")

    comments: list[GhostComment] = []
    for position, entry in enumerate(entries, 1):
        try:
            comments.append(
                GhostComment(
                    file_path=str(entry["file_path"]),
                    line_number=int(entry["line_number"]),
                    content=str(entry["content"]),
                    prefix=str(entry["prefix"]),
                    original_line=str(entry["original_line"]),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise file_error(f"Malformed comment #{position} in {input_path}", e) from e
    return comments
