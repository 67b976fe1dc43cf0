# Core orchestration logic for periodfmt.
# This file wires settings, vault lookups and validators together and prints
# results for the CLI.
#
# It intentionally contains no argument parsing and no validation rules.

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from periodfmt.dates import DateEngine, default_engine
from periodfmt.models import Complexity, Granularity, NoteFile
from periodfmt.settings import load_settings
from periodfmt.traverse import iter_note_files
from periodfmt.validation import (
    date_from_file,
    get_date_input,
    validate_format,
    validate_format_complexity,
    validate_settings,
)
from periodfmt.vault import LocalVault, normalize_path

console = Console()

# Used when neither the command line nor the vault settings name a format.
DEFAULT_FORMATS = {
    Granularity.day: "YYYY-MM-DD",
    Granularity.week: "gggg-[W]ww",
    Granularity.month: "YYYY-MM",
    Granularity.quarter: "YYYY-[Q]Q",
    Granularity.year: "YYYY",
}


# Simple counters used for the scan summary block.
@dataclass
class Counters:
    matched: int = 0
    unmatched: int = 0


def run_check(fmt: str, granularity: Granularity, engine: Optional[DateEngine] = None) -> bool:
    # Report the format verdict and, when it passes, its complexity class.
    error = validate_format(fmt, granularity, engine)
    if error:
        console.print(f"[red]INVALID:[/red] {error}")
        return False

    console.print("Format: [green]OK[/green]")
    if not fmt:
        console.print("Empty format, nothing else to check.")
        return True

    complexity = validate_format_complexity(fmt, granularity, engine)
    console.print(f"Complexity: {_complexity_label(complexity)}")
    return True


def run_resolve(
    path: Path,
    fmt: str,
    granularity: Granularity,
    vault_root: Optional[Path] = None,
    engine: Optional[DateEngine] = None,
) -> bool:
    # Show which text is parsed for a file and the period it maps to.
    engine = engine or default_engine()
    note = _note_file(path, vault_root)

    date_input = get_date_input(note, fmt, granularity, engine)
    console.print(f"Input:  {date_input}", markup=False)

    period = date_from_file(note, fmt, granularity, engine)
    if period is None:
        console.print("[red]Not a period note for this format[/red]")
        return False

    console.print(f"Period: {period.isoformat()}")
    return True


def run_scan(
    vault_root: Path,
    granularity: Granularity,
    fmt: Optional[str] = None,
    folder: Optional[str] = None,
    recursive: bool = True,
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    engine: Optional[DateEngine] = None,
) -> Counters:
    # List the notes below a folder together with the period each represents.
    # Command-line values override the vault settings.
    engine = engine or default_engine()
    period_settings = load_settings(vault_root)[granularity]
    fmt = fmt or period_settings.format or DEFAULT_FORMATS[granularity]
    folder = folder if folder is not None else period_settings.folder

    base = vault_root
    if folder and normalize_path(folder) != "/":
        base = vault_root / normalize_path(folder)

    counters = Counters()
    for path in iter_note_files(base, recursive=recursive, include=include, exclude=exclude):
        note = _note_file(path, vault_root)
        period = date_from_file(note, fmt, granularity, engine)
        if period is None:
            counters.unmatched += 1
            continue
        counters.matched += 1
        console.print(f"{period.date().isoformat()}  {note.path}", markup=False)

    console.print()
    console.print("[bold]Summary[/bold]")
    console.print(f"Format:    {fmt}", markup=False)
    console.print(f"Matched:   {counters.matched}")
    console.print(f"Unmatched: {counters.unmatched}")
    return counters


def run_settings(vault_root: Path, engine: Optional[DateEngine] = None) -> bool:
    # Validate every enabled granularity and print one row each.
    vault = LocalVault(vault_root)
    reports = validate_settings(vault, load_settings(vault_root), engine)

    if not reports:
        console.print("No periodic notes are enabled in this vault.")
        return True

    table = Table(title="Periodic note settings")
    table.add_column("Granularity")
    table.add_column("Format")
    table.add_column("Complexity")
    table.add_column("Folder")
    table.add_column("Template")

    for granularity, report in reports.items():
        table.add_row(
            granularity.value,
            _verdict(report.format_error),
            _complexity_label(report.complexity) if report.complexity else "-",
            _verdict(report.folder_error),
            _verdict(report.template_error),
        )

    console.print(table)
    return all(report.ok for report in reports.values())


def _note_file(path: Path, vault_root: Optional[Path]) -> NoteFile:
    # Vault-relative when a root is known, otherwise the path as given.
    if vault_root is not None:
        try:
            path = path.resolve().relative_to(vault_root.resolve())
        except ValueError:
            console.print(f"[dim]Outside the vault, using the full path: {escape(str(path))}[/dim]", highlight=False)
    return NoteFile.from_path(path.as_posix())


def _verdict(error: str) -> str:
    return f"[red]{error}[/red]" if error else "[green]OK[/green]"


def _complexity_label(complexity: Complexity) -> str:
    if complexity is Complexity.valid:
        return "[green]valid[/green]"
    if complexity is Complexity.fragile_basename:
        return "[yellow]fragile-basename[/yellow] (resolved from nested folders)"
    return "[red]loose-parsing[/red]"
