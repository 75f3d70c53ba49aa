"""Pytest configuration and fixtures."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import pytest

from ghostcomment.config import ScanConfig


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog sees ghostcomment records in every test."""
    yield
    package_logger = logging.getLogger("ghostcomment")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def scan_config() -> ScanConfig:
    """Default scan config restricted to the languages used by fixtures."""
    return ScanConfig(
        prefix="//_gc_",
        include=["**/*.{js,ts}", "**/*.py"],
        exclude=["**/node_modules/**"],
    )


@pytest.fixture
def mock_project(temp_dir: Path):
    """Create a small source tree with ghost comments."""
    project = temp_dir / "project"
    (project / "src").mkdir(parents=True)

    (project / "src" / "app.ts").write_text(
        "import { run } from './run';\n"
        "\n"
        "export function main() {\n"
        "  run();\n"
        "  //_gc_ Removed unused legacy logic\n"
        "  return 0;\n"
        "}\n"
    )
    (project / "src" / "util.js").write_text(
        "//_gc_ Is this helper still needed?\n"
        "function helper() {\n"
        "  return 1; //_gc_ magic number\n"
        "}\n"
    )
    (project / "README.md").write_text("Use //_gc_ markers for review notes.\n")

    # Excluded directory with a marker that must not be reported
    vendored = project / "node_modules" / "lib"
    vendored.mkdir(parents=True)
    (vendored / "index.js").write_text("//_gc_ should be ignored\n")

    yield project
