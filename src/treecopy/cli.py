"""Command-line interface for treecopy."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import tomli_w
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_CONFIG_FILENAME, ConfigError, CopyPolicy, load_policy
from .copier import TreeCopier
from .errors import AttributeRestoreError, CopyIncompleteError, TreecopyError, UnsupportedTypeError
from .handlers import FIFO_HANDLER, with_handlers
from .models import CopyReport

app = typer.Typer(help="Recursive, metadata-preserving copy of files, directory trees and symlinks")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, CopyIncompleteError):
        _format_report(exc.report)
        _format_failures(exc.failures)
        console.print(f"[red]{escape(str(exc))}[/red]")
        if any("owner" in failure.steps for failure in exc.failures):
            console.print("[yellow]Tip: restoring ownership usually needs elevated privileges (e.g. `sudo`).[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(exc, PermissionError):
        console.print(f"[red]Permission denied:[/red] {escape(str(exc))}")
        console.print("[yellow]Re-run the command with elevated privileges or fix the source permissions.[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(exc, UnsupportedTypeError):
        console.print(f"[red]{escape(str(exc))}[/red]")
        console.print("[yellow]Use --ignore-unsupported to skip it, or --fifo if it is a named pipe.[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(exc, (ConfigError, TreecopyError, OSError)):
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    raise exc


def _format_report(report: CopyReport) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Kind")
    table.add_column("Copied", justify="right")

    table.add_row("files", str(report.files))
    table.add_row("directories", str(report.directories))
    table.add_row("symlinks", str(report.symlinks))
    if report.special:
        table.add_row("special", str(report.special))
    table.add_row("bytes", str(report.bytes_copied))

    console.print(table)

    for path in report.skipped:
        console.print(f"[yellow]Skipped unsupported entry '{escape(str(path))}'.[/yellow]")


def _format_failures(failures: Iterable[AttributeRestoreError]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Path", overflow="fold")
    table.add_column("Step")
    table.add_column("Reason", overflow="fold")

    for failure in failures:
        for error in failure.errors:
            table.add_row(escape(str(failure.path)), error.step, escape(str(error)))

    console.print(table)


def _resolve_policy(config: Path | None, archive: bool, **overrides: bool | None) -> CopyPolicy:
    policy = load_policy(config) if config is not None else CopyPolicy()
    if archive:
        policy = policy.merged(preserve_permissions=True, preserve_owner=True, preserve_time=True)
    return policy.merged(**overrides)


@app.command()
def copy(
    source: Path = typer.Argument(..., help="File, directory or symlink to copy"),
    destination: Path = typer.Argument(..., help="Path to create"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to treecopy.toml"),
    archive: bool = typer.Option(
        False,
        "--archive",
        "-a",
        help="Preserve permissions, owner and timestamps",
    ),
    preserve_permissions: bool | None = typer.Option(
        None,
        "--preserve-permissions/--no-preserve-permissions",
        "-p",
        help="Give every copied entry the source's permission bits",
    ),
    preserve_owner: bool | None = typer.Option(
        None,
        "--preserve-owner/--no-preserve-owner",
        help="Restore the source's owner and group",
    ),
    preserve_time: bool | None = typer.Option(
        None,
        "--preserve-time/--no-preserve-time",
        help="Restore access and modification times",
    ),
    ignore_unsupported: bool | None = typer.Option(
        None,
        "--ignore-unsupported/--no-ignore-unsupported",
        help="Skip entries of unsupported file types instead of failing",
    ),
    fifo: bool = typer.Option(False, "--fifo", help="Recreate named pipes instead of treating them as unsupported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every copied entry"),
) -> None:
    """Copy SOURCE to DESTINATION recursively."""

    _configure_logging(verbose)
    try:
        policy = _resolve_policy(
            config,
            archive,
            preserve_permissions=preserve_permissions,
            preserve_owner=preserve_owner,
            preserve_time=preserve_time,
            ignore_unsupported_types=ignore_unsupported,
        )
        handlers = with_handlers(FIFO_HANDLER) if fifo else with_handlers()
        report = TreeCopier(policy, handlers).copy(source, destination)
        _format_report(report)
        console.print(f"[green]Copied '{escape(str(source))}' to '{escape(str(destination))}'.[/green]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def init(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        "-c",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    archive: bool = typer.Option(False, "--archive", "-a", help="Enable every preservation switch in the template"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Create a starter treecopy configuration file."""

    if config.exists() and not force:
        console.print(f"[red]Configuration '{escape(str(config))}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    policy = CopyPolicy.archive() if archive else CopyPolicy()
    config.parent.mkdir(parents=True, exist_ok=True)
    config.write_text("# treecopy configuration\n\n" + tomli_w.dumps({"policy": policy.model_dump()}))
    console.print(f"[green]Created '{escape(str(config))}'.[/green]")


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
