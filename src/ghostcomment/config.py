"""Configuration management for GhostComment."""

from __future__ import annotations

import json
import os
import re
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

# Conditional import for Python 3.10 compatibility
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

from ghostcomment.errors import config_error

# Resource limits
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_FILES = 10_000

# Static constraints on a scan configuration
# A line-comment token (//, #, --, ; or %) then a word ending in _ or :
PREFIX_PATTERN = re.compile(r"^(?://|#|--|;|%)\w*[_:]$")
MAX_PREFIX_LENGTH = 20
MAX_INCLUDE_PATTERNS = 50
MAX_EXCLUDE_PATTERNS = 100

DEFAULT_PREFIX = "//_gc_"

DEFAULT_INCLUDE: tuple[str, ...] = (
    "**/*.{js,ts,tsx,jsx}",  # JavaScript/TypeScript
    "**/*.py",  # Python
    "**/*.go",  # Go
    "**/*.rs",  # Rust
    "**/*.{java,kt}",  # Java/Kotlin
    "**/*.swift",  # Swift
    "**/*.rb",  # Ruby
    "**/*.php",  # PHP
    "**/*.{c,cpp,cc,cxx,h,hpp}",  # C/C++
    "**/*.cs",  # C#
)

DEFAULT_EXCLUDE: tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/*.min.js",
    "**/*.bundle.js",
    "**/vendor/**",
    "**/target/**",  # Rust
    "**/bin/**",
    "**/obj/**",  # C#
    "**/__pycache__/**",  # Python
    "**/*.pyc",
    "**/venv/**",
    "**/env/**",
)

# Config files looked up in the working directory, first match wins
LOCAL_CONFIG_NAMES: tuple[str, ...] = (
    "ghostcomment.toml",
    ".ghostcommentrc",
    ".ghostcommentrc.json",
    ".ghostcomment.json",
)

ENV_CONFIG_PATH = "GC_CONFIG_PATH"
ENV_DRY_RUN = "GC_DRY_RUN"
ENV_FAIL_ON_FOUND = "GC_FAIL_ON_FOUND"
ENV_DEBUG = "GC_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass
class ScanConfig:
    """What to scan for and where."""

    prefix: str = DEFAULT_PREFIX
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    fail_on_found: bool = False


@dataclass
class CleanConfig:
    """Default cleaning policy, overridable from the CLI."""

    create_backups: bool = True
    restore_on_error: bool = True
    remove_backups: bool = False
    dry_run: bool = False


@dataclass
class Config:
    """Root configuration container."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    clean: CleanConfig = field(default_factory=CleanConfig)

    # Metadata (not from the config file)
    _source: Path | None = field(default=None, repr=False)


def validate_scan_config(config: ScanConfig) -> None:
    """
    Check a scan configuration against static constraints.

    Runs before any filesystem access so an invalid configuration does no
    partial work.

    Raises:
        GhostCommentError: CONFIG_ERROR describing the first violation
    """
    prefix = config.prefix
    if not prefix:
        raise config_error("Prefix cannot be empty")
    if len(prefix) > MAX_PREFIX_LENGTH:
        raise config_error(
            f"Prefix '{prefix}' is too long ({len(prefix)} characters, "
            f"maximum {MAX_PREFIX_LENGTH})"
        )
    if not PREFIX_PATTERN.match(prefix):
        raise config_error(
            f"Invalid prefix '{prefix}': must start with a comment token "
            "(//, #, --, ; or %) and end with '_' or ':'"
        )

    if not config.include:
        raise config_error("At least one include pattern is required")
    if len(config.include) > MAX_INCLUDE_PATTERNS:
        raise config_error(
            f"Too many include patterns ({len(config.include)}, "
            f"maximum {MAX_INCLUDE_PATTERNS})"
        )
    if len(config.exclude) > MAX_EXCLUDE_PATTERNS:
        raise config_error(
            f"Too many exclude patterns ({len(config.exclude)}, "
            f"maximum {MAX_EXCLUDE_PATTERNS})"
        )


def get_xdg_config_home() -> Path:
    """Get XDG config home, respecting environment variable."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def get_config_paths(cwd: Path | None = None) -> tuple[Path, Path]:
    """
    Get config file paths in priority order.

    The local path is the first existing file from ``LOCAL_CONFIG_NAMES``,
    or ``ghostcomment.toml`` when none exists yet.

    Returns:
        (xdg_path, cwd_path) - XDG is base, CWD overrides
    """
    base = cwd or Path.cwd()
    xdg_path = get_xdg_config_home() / "ghostcomment" / "config.toml"
    cwd_path = base / LOCAL_CONFIG_NAMES[0]
    for name in LOCAL_CONFIG_NAMES:
        candidate = base / name
        if candidate.is_file():
            cwd_path = candidate
            break
    return xdg_path, cwd_path


def _load_toml(path: Path) -> dict[str, Any]:
    """Load and parse a TOML file."""
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _load_json(path: Path) -> dict[str, Any]:
    """
    Load a JSON config file in the flat ``.ghostcommentrc`` layout.

    Keys ``prefix``, ``include``, ``exclude`` and ``failOnFound`` are mapped
    onto the ``[scan]`` section.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("top-level value must be an object")

    scan: dict[str, Any] = {}
    for key in ("prefix", "include", "exclude"):
        if key in data:
            scan[key] = data[key]
    if "failOnFound" in data:
        scan["fail_on_found"] = data["failOnFound"]
    return {"scan": scan}


def _load_file(path: Path) -> dict[str, Any]:
    """Load a config file, choosing the parser from its name."""
    try:
        if path.suffix == ".toml":
            return _load_toml(path)
        return _load_json(path)
    except tomllib.TOMLDecodeError as e:
        raise config_error(f"Invalid TOML in {path}", e) from e
    except (json.JSONDecodeError, ValueError) as e:
        raise config_error(f"Invalid JSON in {path}", e) from e
    except OSError as e:
        raise config_error(f"Cannot read config file {path}", e) from e


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, override takes precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _validate_config(data: dict[str, Any]) -> list[str]:
    """Validate parsed config data and return list of errors."""
    errors: list[str] = []

    scan = data.get("scan", {})
    if not isinstance(scan, dict):
        errors.append("[scan] must be a table")
        scan = {}

    prefix = scan.get("prefix")
    if prefix is not None and not isinstance(prefix, str):
        errors.append(f"Invalid scan.prefix: {prefix!r} (must be a string)")

    for key in ("include", "exclude"):
        value = scan.get(key)
        if value is not None and not _is_string_list(value):
            errors.append(f"Invalid scan.{key}: must be a list of glob strings")

    fail_on_found = scan.get("fail_on_found")
    if fail_on_found is not None and not isinstance(fail_on_found, bool):
        errors.append(f"Invalid scan.fail_on_found: {fail_on_found!r} (use true or false)")

    clean = data.get("clean", {})
    if not isinstance(clean, dict):
        errors.append("[clean] must be a table")
        clean = {}

    for key in ("create_backups", "restore_on_error", "remove_backups", "dry_run"):
        value = clean.get(key)
        if value is not None and not isinstance(value, bool):
            errors.append(f"Invalid clean.{key}: {value!r} (use true or false)")

    return errors


def _filter_known_keys(data: dict[str, Any], dataclass_type: type) -> dict[str, Any]:
    """Filter dict to only include keys that are valid fields for the dataclass."""
    valid_fields = {f.name for f in fields(dataclass_type)}
    return {k: v for k, v in data.items() if k in valid_fields}


# Mapping of section names to their config classes
SECTION_TYPES = {
    "scan": ScanConfig,
    "clean": CleanConfig,
}


def _dict_to_config(data: dict[str, Any], source: Path | None = None) -> Config:
    """Convert parsed config dict to Config dataclass."""
    sections = {
        name: cls(**_filter_known_keys(data.get(name, {}), cls))
        for name, cls in SECTION_TYPES.items()
    }
    return Config(**sections, _source=source)


def parse_bool_env(name: str) -> bool | None:
    """
    Read a boolean environment variable.

    Returns:
        The parsed value, or None when the variable is unset

    Raises:
        GhostCommentError: CONFIG_ERROR for an unrecognised value
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise config_error(f"Invalid value for {name}: '{raw}' (use true or false)")


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply GC_* environment overrides on top of file data."""
    overrides: dict[str, Any] = {}

    dry_run = parse_bool_env(ENV_DRY_RUN)
    if dry_run is not None:
        overrides.setdefault("clean", {})["dry_run"] = dry_run

    fail_on_found = parse_bool_env(ENV_FAIL_ON_FOUND)
    if fail_on_found is not None:
        overrides.setdefault("scan", {})["fail_on_found"] = fail_on_found

    return _merge_dicts(data, overrides)


def load_config(cwd: Path | None = None) -> Config:
    """
    Load configuration with XDG + CWD override precedence.

    Priority (highest to lowest):
    1. GC_DRY_RUN / GC_FAIL_ON_FOUND environment overrides
    2. GC_CONFIG_PATH (replaces file discovery when set)
    3. ./ghostcomment.toml or a legacy ./.ghostcommentrc JSON file
    4. ~/.config/ghostcomment/config.toml (XDG base)
    5. Built-in defaults

    Returns:
        Merged Config instance

    Raises:
        GhostCommentError: CONFIG_ERROR if a config file is unreadable or invalid
    """
    explicit = os.environ.get(ENV_CONFIG_PATH)
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise config_error(f"{ENV_CONFIG_PATH} points to a missing file: {path}")
        return load_config_from_file(path)

    xdg_path, cwd_path = get_config_paths(cwd)

    merged_data: dict[str, Any] = {}
    active_source: Path | None = None

    # Load XDG config if exists
    if xdg_path.is_file():
        merged_data = _load_file(xdg_path)
        active_source = xdg_path

    # Merge CWD config if exists (overrides XDG)
    if cwd_path.is_file():
        merged_data = _merge_dicts(merged_data, _load_file(cwd_path))
        active_source = cwd_path

    merged_data = _apply_env_overrides(merged_data)

    # Validate merged config data
    if merged_data:
        errors = _validate_config(merged_data)
        if errors:
            raise config_error(
                f"Config validation failed ({active_source}): {'; '.join(errors)}"
            )

    return _dict_to_config(merged_data, active_source)


def load_config_from_file(path: Path) -> Config:
    """Load configuration from a specific file."""
    data = _apply_env_overrides(_load_file(path))
    errors = _validate_config(data)
    if errors:
        raise config_error(f"Config validation failed: {'; '.join(errors)}")
    return _dict_to_config(data, path)


# Default config template for `config init`
DEFAULT_CONFIG_TEMPLATE = """\
# GhostComment Configuration
#
# Ghost comments are reviewer notes left inline, e.g.
#     //_gc_ Removed unused legacy logic
# `ghostcomment scan` extracts them, `ghostcomment clean` removes them.

[scan]
prefix = "//_gc_"       # Marker token: comment start + tag, ending in _ or :
fail_on_found = false   # Exit non-zero from `scan` when comments exist

include = [
    "**/*.{js,ts,tsx,jsx}",
    "**/*.py",
    "**/*.go",
    "**/*.rs",
    "**/*.{java,kt}",
    "**/*.swift",
    "**/*.rb",
    "**/*.php",
    "**/*.{c,cpp,cc,cxx,h,hpp}",
    "**/*.cs",
]

exclude = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/coverage/**",
    "**/*.min.js",
    "**/*.bundle.js",
    "**/vendor/**",
    "**/target/**",
    "**/bin/**",
    "**/obj/**",
    "**/__pycache__/**",
    "**/*.pyc",
    "**/venv/**",
    "**/env/**",
]

[clean]
create_backups = true    # Copy each file to .<name>.ghostcomment-backup-<time> first
restore_on_error = true  # Roll back cleaned files if any file in the batch fails
remove_backups = false   # Delete backups after a fully successful clean
dry_run = false          # Verify and report without writing
"""
