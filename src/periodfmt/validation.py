# Format validation and date inference for periodic notes.
# Every check here is advisory: expected failures come back as strings or
# Complexity members, never as exceptions.
#
# Date math goes through a DateEngine and vault reads through a Vault.

from __future__ import annotations

from datetime import datetime
from typing import Dict, Mapping, Optional

from rich.console import Console

from periodfmt.dates import DateEngine, default_engine
from periodfmt.models import (
    FOLDER_NOT_FOUND,
    ILLEGAL_CHARACTERS,
    PARSE_FAILED,
    TEMPLATE_NOT_FOUND,
    Complexity,
    Granularity,
    NoteFile,
    PeriodSettings,
    SettingsReport,
)
from periodfmt.naming import is_valid_filename, path_without_extension, remove_escaped_characters
from periodfmt.vault import Vault, normalize_path

_err = Console(stderr=True)

# Number of consecutive periods checked for colliding output.
UNIQUENESS_WINDOW = 1000


def validate_format(
    fmt: str,
    granularity: Granularity,
    engine: Optional[DateEngine] = None,
) -> str:
    """Return "" if ``fmt`` is usable for ``granularity``, else a short error.

    An empty format means the feature is off and is always valid. Only daily
    formats are round-tripped through the engine.
    """
    if not fmt:
        return ""

    if not is_valid_filename(fmt):
        return ILLEGAL_CHARACTERS

    if granularity is Granularity.day:
        engine = engine or default_engine()
        formatted = engine.format(engine.now(), fmt)
        if engine.parse(formatted, fmt, strict=True) is None:
            return PARSE_FAILED

    return ""


def validate_format_complexity(
    fmt: str,
    granularity: Granularity,
    engine: Optional[DateEngine] = None,
) -> Complexity:
    """Classify how safely ``fmt`` identifies a single period.

    The current period start must survive a strict round-trip, otherwise the
    format is ``loose-parsing``. After that the next ``UNIQUENESS_WINDOW``
    periods are formatted; the first repeated output makes the format
    ``fragile-basename``. This is a bounded probe, not a uniqueness proof.
    """
    engine = engine or default_engine()

    period = engine.start_of(engine.now(), granularity)
    formatted = engine.format(period, fmt)
    if engine.parse(formatted, fmt, strict=True) is None:
        return Complexity.loose_parsing

    seen: Dict[str, datetime] = {formatted: period}
    for _ in range(UNIQUENESS_WINDOW):
        period = engine.add(period, granularity, 1)
        out = engine.format(period, fmt)
        if out in seen:
            # Format strings may contain brackets, so markup stays off.
            _err.print(
                f"periodfmt: two periods produce the same output; "
                f"date 1: {period.isoformat()}, date 2: {seen[out].isoformat()}, "
                f"format: '{fmt}', formatted: '{out}'",
                style="dim",
                markup=False,
                highlight=False,
            )
            return Complexity.fragile_basename
        seen[out] = period

    return Complexity.valid


def get_date_input(
    file: NoteFile,
    fmt: str,
    granularity: Granularity,
    engine: Optional[DateEngine] = None,
) -> str:
    # Text to hand to the parser for this file.
    # Fragile formats such as YYYY/MM/DD need the parent folders as well;
    # this assumes the folder nesting mirrors the separators in the format.
    if validate_format_complexity(fmt, granularity, engine) is Complexity.fragile_basename:
        skeleton = remove_escaped_characters(fmt)
        nesting_level = skeleton.count("/") + 1
        parts = path_without_extension(file).split("/")
        return "/".join(parts[-nesting_level:])
    return file.basename


def date_from_file(
    file: NoteFile,
    fmt: str,
    granularity: Granularity,
    engine: Optional[DateEngine] = None,
) -> Optional[datetime]:
    """Return the start of the period ``file`` represents, or None."""
    engine = engine or default_engine()
    text = get_date_input(file, fmt, granularity, engine)
    parsed = engine.parse(text, fmt, strict=True)
    if parsed is None:
        return None
    return engine.start_of(parsed, granularity)


def validate_template(vault: Vault, template: str) -> str:
    if not template:
        return ""

    if vault.get_first_linkpath_dest(template, "") is None:
        return TEMPLATE_NOT_FOUND

    return ""


def validate_folder(vault: Vault, folder: str) -> str:
    if not folder or folder == "/":
        return ""

    if vault.get_abstract_file_by_path(normalize_path(folder)) is None:
        return FOLDER_NOT_FOUND

    return ""


def validate_settings(
    vault: Vault,
    settings: Mapping[Granularity, PeriodSettings],
    engine: Optional[DateEngine] = None,
) -> Dict[Granularity, SettingsReport]:
    # Run every check for each enabled granularity.
    # The complexity probe is skipped when the format itself is rejected.
    reports: Dict[Granularity, SettingsReport] = {}
    for granularity, period in settings.items():
        if not period.enabled:
            continue

        format_error = validate_format(period.format, granularity, engine)
        complexity = None
        if period.format and not format_error:
            complexity = validate_format_complexity(period.format, granularity, engine)

        reports[granularity] = SettingsReport(
            granularity=granularity,
            format_error=format_error,
            complexity=complexity,
            folder_error=validate_folder(vault, period.folder),
            template_error=validate_template(vault, period.template),
        )
    return reports
