"""GhostComment CLI - Main entry point."""

from __future__ import annotations

import os
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ghostcomment import __version__
from ghostcomment.config import (
    DEFAULT_CONFIG_TEMPLATE,
    ENV_DEBUG,
    Config,
    ScanConfig,
    get_config_paths,
    load_config,
    load_config_from_file,
)
from ghostcomment.core.analyzer import Analyzer
from ghostcomment.core.cleaner import Cleaner, CleanOptions
from ghostcomment.core.exporter import export_clean_result, export_result, load_comments
from ghostcomment.core.grouping import group_by_file
from ghostcomment.core.scanner import GhostComment, Scanner
from ghostcomment.core.validator import validate_comments_for_cleaning
from ghostcomment.errors import ErrorKind, GhostCommentError
from ghostcomment.ui.console import (
    create_console,
    print_banner,
    print_error,
    print_success,
    print_warning,
    setup_logging,
)
from ghostcomment.ui.prompts import confirm_clean, select_files

app = typer.Typer(
    name="ghostcomment",
    help="Find reviewer-only ghost comments in code and remove them safely.",
    no_args_is_help=True,
)
console = create_console()


class State:
    """Global state container for CLI."""

    def __init__(self) -> None:
        self.config: Config = Config()  # Default until loaded


state = State()


def _fail(error: GhostCommentError) -> NoReturn:
    """Print a GhostCommentError and exit non-zero."""
    label = "Config error" if error.kind is ErrorKind.CONFIG_ERROR else "Error"
    print_error(console, f"{label}: {escape(str(error))}")
    raise typer.Exit(1) from error


def _scan_config(prefix: str | None) -> ScanConfig:
    """Build the scan config for a command, applying a --prefix override."""
    base = state.config.scan
    return ScanConfig(
        prefix=prefix if prefix is not None else base.prefix,
        include=list(base.include),
        exclude=list(base.exclude),
        fail_on_found=base.fail_on_found,
    )


def _collect_comments(path: Path, prefix: str | None, from_file: Path | None) -> list[GhostComment]:
    """Scan ``path`` or read a previous export, exiting on error."""
    try:
        if from_file is not None:
            return load_comments(from_file)
        return Scanner(console=console).scan(_scan_config(prefix), path)
    except GhostCommentError as e:
        _fail(e)


def _print_config_locations(xdg_path: Path, cwd_path: Path, *, verbose: bool = False) -> None:
    """Print config file locations and their status.

    Args:
        xdg_path: Path to the global XDG config file.
        cwd_path: Path to the local CWD config file.
        verbose: If True, use detailed format with spacing (for config_path).
                 If False, use compact format (for config_show).
    """
    if verbose:
        console.print("[bold]Config file locations:[/bold]\n")

        xdg_status = "[green]exists[/green]" if xdg_path.exists() else "[dim]not found[/dim]"
        console.print(f"  Global (XDG): {xdg_path}")
        console.print(f"                {xdg_status}\n")

        cwd_status = (
            "[green]exists (overrides global)[/green]"
            if cwd_path.exists()
            else "[dim]not found[/dim]"
        )
        console.print(f"  Local (CWD):  {cwd_path}")
        console.print(f"                {cwd_status}")
    else:
        console.print("\n[bold]Config locations:[/bold]")
        xdg_status = "[green]exists[/green]" if xdg_path.exists() else "[dim]not found[/dim]"
        console.print(f"  Global: {xdg_path} ({xdg_status})")

        cwd_status = "[green]exists[/green]" if cwd_path.exists() else "[dim]not found[/dim]"
        console.print(f"  Local:  {cwd_path} ({cwd_status})")


PATH_ARGUMENT = typer.Argument(
    Path("."),
    help="Root directory of the source tree",
    exists=True,
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
)

PREFIX_OPTION = typer.Option(
    None,
    "--prefix",
    "-p",
    help="Marker token to look for (default: from config, //_gc_)",
)

FROM_OPTION = typer.Option(
    None,
    "--from",
    help="Use comments from a JSON export instead of scanning",
    exists=True,
    dir_okay=False,
    readable=True,
)


@app.command()
def scan(
    path: Path = PATH_ARGUMENT,
    prefix: Optional[str] = PREFIX_OPTION,
    show_all: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Show all comments, not just the first 20",
    ),
    count_only: bool = typer.Option(
        False,
        "--count",
        help="Only print the number of ghost comments",
    ),
    fail_on_found: Optional[bool] = typer.Option(
        None,
        "--fail-on-found/--no-fail-on-found",
        help="Exit with code 1 when ghost comments exist (default: from config)",
    ),
    export: Optional[Path] = typer.Option(
        None,
        "--export",
        "-o",
        help="Write the comments to a file for the posting step",
        dir_okay=False,
    ),
    export_format: str = typer.Option(
        "json",
        "--format",
        "-f",
        help="Export format: json or csv",
    ),
) -> None:
    """Scan a source tree for ghost comments."""
    if export_format not in ("json", "csv"):
        print_error(console, f"Invalid export format: {escape(export_format)}")
        console.print("[dim]Valid options: json, csv[/dim]")
        raise typer.Exit(1)

    config = _scan_config(prefix)
    should_fail = state.config.scan.fail_on_found if fail_on_found is None else fail_on_found

    if count_only:
        try:
            count = Scanner().count_ghost_comments(config, path)
        except GhostCommentError as e:
            _fail(e)
        console.print(str(count))
        if should_fail and count > 0:
            raise typer.Exit(1)
        return

    print_banner(console)
    console.print(f"[dim]Prefix: {escape(config.prefix)}[/dim]\n")

    comments = _collect_comments(path, prefix, None)

    analyzer = Analyzer(console=console)
    analyzer.display_comments(comments, show_all=show_all)

    if export is not None:
        try:
            export_result(
                comments,
                export,
                "csv" if export_format == "csv" else "json",
                root_path=path,
                prefix=config.prefix,
            )
        except OSError as e:
            print_error(console, f"Failed to write export {export}: {e}")
            raise typer.Exit(1) from e
        console.print(f"\n[dim]Exported {len(comments)} comment(s) to {export}[/dim]")

    if should_fail and comments:
        print_error(console, f"\nFound {len(comments)} ghost comment(s) (fail-on-found).")
        raise typer.Exit(1)


@app.command()
def clean(
    path: Path = PATH_ARGUMENT,
    prefix: Optional[str] = PREFIX_OPTION,
    from_file: Optional[Path] = FROM_OPTION,
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--execute",
        help="Verify and report without writing (default: from config)",
    ),
    backup: Optional[bool] = typer.Option(
        None,
        "--backup/--no-backup",
        help="Copy each file to a hidden backup before rewriting it",
    ),
    restore_on_error: Optional[bool] = typer.Option(
        None,
        "--restore-on-error/--no-restore-on-error",
        help="Roll back cleaned files from backup if any file fails",
    ),
    remove_backups: Optional[bool] = typer.Option(
        None,
        "--remove-backups/--keep-backups",
        help="Delete backups after a fully successful clean",
    ),
    interactive: bool = typer.Option(
        False,
        "--interactive",
        "-i",
        help="Choose which files to clean",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation",
    ),
    export: Optional[Path] = typer.Option(
        None,
        "--export",
        "-o",
        help="Write a JSON report of the clean to a file",
        dir_okay=False,
    ),
) -> None:
    """Remove ghost comment lines from the source tree."""
    print_banner(console)

    defaults = state.config.clean
    options = CleanOptions(
        create_backups=defaults.create_backups if backup is None else backup,
        restore_on_error=defaults.restore_on_error if restore_on_error is None else restore_on_error,
        remove_backups=defaults.remove_backups if remove_backups is None else remove_backups,
        dry_run=defaults.dry_run if dry_run is None else dry_run,
    )

    comments = _collect_comments(path, prefix, from_file)
    if not comments:
        print_success(console, "No ghost comments found. Nothing to clean.")
        raise typer.Exit(0)

    if interactive:
        selected = set(select_files(group_by_file(comments)))
        comments = [c for c in comments if c.file_path in selected]
        if not comments:
            print_warning(console, "No files selected.")
            raise typer.Exit(0)

    analyzer = Analyzer(console=console)
    analyzer.display_clean_preview(comments)

    if not options.dry_run and not yes:
        file_count = len({c.file_path for c in comments})
        if not confirm_clean(len(comments), file_count):
            print_warning(console, "Aborted.")
            raise typer.Exit(0)

    cleaner = Cleaner(console=console)
    try:
        result = cleaner.remove_comments(comments, options, path)
    except GhostCommentError as e:
        _fail(e)

    analyzer.display_clean_result(result, dry_run=options.dry_run)

    if export is not None:
        try:
            export_clean_result(result, export)
        except OSError as e:
            print_error(console, f"Failed to write export {export}: {e}")
            raise typer.Exit(1) from e
        console.print(f"\n[dim]Exported clean report to {export}[/dim]")

    if options.dry_run:
        console.print("[dim]Use --execute to actually remove the lines.[/dim]")

    if result.has_errors:
        raise typer.Exit(1)


@app.command()
def validate(
    path: Path = PATH_ARGUMENT,
    prefix: Optional[str] = PREFIX_OPTION,
    from_file: Optional[Path] = FROM_OPTION,
) -> None:
    """Check that ghost comments can be removed, without changing anything."""
    comments = _collect_comments(path, prefix, from_file)
    result = validate_comments_for_cleaning(comments, path)

    analyzer = Analyzer(console=console)
    analyzer.display_validation(result)

    if not result.valid:
        raise typer.Exit(1)


# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage GhostComment configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app)


@config_app.command("init")
def config_init(
    global_config: bool = typer.Option(
        False,
        "--global/--local",
        help="Create in XDG config (--global) or current directory (--local)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing config file",
    ),
) -> None:
    """Generate a default configuration file with comments."""
    xdg_path, _ = get_config_paths()
    target = xdg_path if global_config else Path.cwd() / "ghostcomment.toml"

    if target.exists() and not force:
        print_warning(console, f"Config already exists: {target}")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    # Ensure parent directory exists
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(DEFAULT_CONFIG_TEMPLATE)
    except OSError as e:
        print_error(console, f"Cannot write config file: {target}")
        console.print(f"[dim]Check write permissions for {target.parent}[/dim]")
        raise typer.Exit(1) from e

    location = "global" if global_config else "local"
    console.print(f"[green]Created {location} config:[/green] {target}")


@config_app.command("show")
def config_show(
    resolved: bool = typer.Option(
        True,
        "--resolved/--raw",
        help="Show merged config (--resolved) or raw file (--raw)",
    ),
) -> None:
    """Display the active configuration and its source."""
    config = state.config
    xdg_path, cwd_path = get_config_paths()

    source_text = str(config._source) if config._source else "[dim]defaults only[/dim]"
    console.print(
        Panel.fit(
            f"[bold]Active config:[/bold] {source_text}",
            title="Configuration Source",
        )
    )

    if resolved:
        table = Table(title="Resolved Configuration", show_header=True)
        table.add_column("Section", style="cyan")
        table.add_column("Key", style="green")
        table.add_column("Value")

        for section_name in ["scan", "clean"]:
            section = getattr(config, section_name)
            for key, value in vars(section).items():
                if isinstance(value, list):
                    value = "\n".join(value)
                table.add_row(section_name, key, escape(str(value)))

        console.print(table)
    else:
        if config._source and config._source.exists():
            console.print(escape(config._source.read_text()))
        else:
            console.print("[dim]No config file found[/dim]")

    _print_config_locations(xdg_path, cwd_path, verbose=False)


@config_app.command("path")
def config_path() -> None:
    """Show configuration file locations and status."""
    xdg_path, cwd_path = get_config_paths()
    _print_config_locations(xdg_path, cwd_path, verbose=True)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        is_eager=True,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (overrides default locations)",
        exists=True,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show debug logging",
    ),
) -> None:
    """GhostComment - reviewer notes in code, posted then cleaned."""
    if version:
        console.print(f"GhostComment v{__version__}")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)

    debug = verbose or os.environ.get(ENV_DEBUG, "").strip().lower() in ("1", "true", "yes")
    setup_logging(console, verbose=debug)

    # Load config (custom file or default locations)
    try:
        if config_file:
            state.config = load_config_from_file(config_file)
        else:
            state.config = load_config()
    except GhostCommentError as e:
        _fail(e)


if __name__ == "__main__":
    app()
