"""GhostComment - find reviewer notes in code and remove them safely."""

from __future__ import annotations

__version__ = "1.0.0"

from ghostcomment.config import CleanConfig, Config, ScanConfig, load_config  # noqa: E402
from ghostcomment.core import (  # noqa: E402
    Cleaner,
    CleanOptions,
    CleanResult,
    GhostComment,
    Scanner,
    ValidationResult,
    group_by_file,
    validate_comments_for_cleaning,
)
from ghostcomment.errors import ErrorKind, GhostCommentError  # noqa: E402

__all__ = [
    "__version__",
    "Config",
    "ScanConfig",
    "CleanConfig",
    "load_config",
    "Scanner",
    "Cleaner",
    "CleanOptions",
    "CleanResult",
    "GhostComment",
    "ValidationResult",
    "group_by_file",
    "validate_comments_for_cleaning",
    "ErrorKind",
    "GhostCommentError",
]
