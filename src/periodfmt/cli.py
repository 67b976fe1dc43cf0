# Command-line interface definition for periodfmt.
# This file is responsible only for argument parsing, validation,
# and dispatch into core application logic.
#
# No validation rules or date math should live here.

from __future__ import annotations

from pathlib import Path as FSPath
from typing import List, Optional

import typer
from rich.console import Console

from periodfmt import __version__
from periodfmt.core import run_check, run_resolve, run_scan, run_settings
from periodfmt.models import Granularity
from periodfmt.settings import SettingsError

app = typer.Typer(
    add_completion=False,
    help="Validate periodic-note date formats and infer the period a note represents.",
)
console = Console()


def _version_callback(value: bool) -> None:
    # Handle version early and exit cleanly.
    if value:
        console.print(__version__)
        raise typer.Exit(code=0)


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
):
    pass


@app.command(help="Validate a format string for one granularity.")
def check(
    fmt: str = typer.Argument(..., metavar="FORMAT", help="Date format, e.g. YYYY-MM-DD."),
    granularity: Granularity = typer.Option(
        Granularity.day, "--granularity", "-g",
        help="Period unit the format names.",
    ),
):
    if not run_check(fmt, granularity):
        raise typer.Exit(code=1)


@app.command(help="Show the text parsed for a note and the period it represents.")
def resolve(
    path: FSPath = typer.Argument(..., help="Note file, relative to the vault when --vault is set."),
    fmt: str = typer.Option(..., "--format", "-f", help="Date format used for the notes."),
    granularity: Granularity = typer.Option(
        Granularity.day, "--granularity", "-g",
        help="Period unit the format names.",
    ),
    vault: Optional[FSPath] = typer.Option(
        None, "--vault",
        help="Vault root; paths are made vault-relative before resolving.",
    ),
):
    if not fmt:
        raise typer.BadParameter("--format must not be empty")

    if vault is not None and not path.is_absolute():
        path = vault / path

    if not run_resolve(path, fmt, granularity, vault_root=vault):
        raise typer.Exit(code=1)


@app.command(help="List the notes in a vault folder with the period each represents.")
def scan(
    vault: FSPath = typer.Argument(..., help="Vault root directory."),
    granularity: Granularity = typer.Option(
        Granularity.day, "--granularity", "-g",
        help="Period unit to scan for.",
    ),
    fmt: Optional[str] = typer.Option(
        None, "--format", "-f",
        help="Override the format from the vault settings.",
    ),
    folder: Optional[str] = typer.Option(
        None, "--folder",
        help="Override the notes folder from the vault settings.",
    ),
    recursive: bool = typer.Option(
        True, "--recursive/--no-recursive",
        help="Recurse into subdirectories.",
    ),
    include: List[str] = typer.Option(
        [], "--include",
        help="Only scan files matching these patterns.",
    ),
    exclude: List[str] = typer.Option(
        [], "--exclude",
        help="Skip files matching these patterns.",
    ),
):
    if not vault.is_dir():
        raise typer.BadParameter(f"Not a directory: {vault}")

    try:
        run_scan(
            vault,
            granularity,
            fmt=fmt,
            folder=folder,
            recursive=recursive,
            include=include,
            exclude=exclude,
        )
    except SettingsError as exc:
        console.print(f"[red]ERROR:[/red] {exc}", highlight=False)
        raise typer.Exit(code=1)


@app.command(help="Validate the periodic note settings stored in a vault.")
def settings(
    vault: FSPath = typer.Argument(..., help="Vault root directory."),
):
    if not vault.is_dir():
        raise typer.BadParameter(f"Not a directory: {vault}")

    try:
        ok = run_settings(vault)
    except SettingsError as exc:
        console.print(f"[red]ERROR:[/red] {exc}", highlight=False)
        raise typer.Exit(code=1)

    if not ok:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
