# Unit tests for periodfmt.validation.
# Pendulum-backed checks run against a pinned clock; StubEngine scripts the
# formatter to force specific classifications.

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pendulum
import pytest

from periodfmt import validation
from periodfmt.dates import PendulumEngine
from periodfmt.models import (
    FOLDER_NOT_FOUND,
    ILLEGAL_CHARACTERS,
    PARSE_FAILED,
    TEMPLATE_NOT_FOUND,
    Complexity,
    Granularity,
    NoteFile,
    PeriodSettings,
)
from periodfmt.validation import (
    UNIQUENESS_WINDOW,
    date_from_file,
    get_date_input,
    validate_folder,
    validate_format,
    validate_format_complexity,
    validate_settings,
    validate_template,
)
from periodfmt.vault import LocalVault


class StubEngine:
    # Day/week arithmetic over plain datetimes with a scripted formatter.
    def __init__(self, formatter, parses: bool = True):
        self.formatter = formatter
        self.parses = parses
        self.format_calls = 0

    def now(self) -> datetime:
        return datetime(2024, 3, 15, 10, 30)

    def format(self, dt: datetime, fmt: str) -> str:
        self.format_calls += 1
        return self.formatter(dt)

    def parse(self, text: str, fmt: str, strict: bool = True):
        return self.now() if self.parses else None

    def start_of(self, dt: datetime, granularity: Granularity) -> datetime:
        if granularity is Granularity.week:
            dt = dt - timedelta(days=dt.weekday())
        return dt.replace(hour=0, minute=0, second=0, microsecond=0)

    def add(self, dt: datetime, granularity: Granularity, count: int = 1) -> datetime:
        days = 7 if granularity is Granularity.week else 1
        return dt + timedelta(days=days * count)


@pytest.fixture
def engine() -> PendulumEngine:
    return PendulumEngine(clock=lambda: pendulum.datetime(2024, 3, 15, 10, 30, tz="UTC"))


@pytest.fixture
def vault(tmp_path: Path) -> LocalVault:
    (tmp_path / "daily").mkdir()
    (tmp_path / "templates").mkdir()
    (tmp_path / "templates" / "daily.md").write_text("# {{date}}", encoding="utf-8")
    return LocalVault(tmp_path)


# ---------------------------------------------------------------------------
# validate_format
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("granularity", list(Granularity))
def test_validate_format_empty_is_always_valid(granularity: Granularity) -> None:
    assert validate_format("", granularity) == ""


def test_validate_format_accepts_round_tripping_day_format(engine: PendulumEngine) -> None:
    assert validate_format("YYYY-MM-DD", Granularity.day, engine) == ""


def test_validate_format_rejects_illegal_characters(engine: PendulumEngine) -> None:
    assert validate_format("??", Granularity.day, engine) == ILLEGAL_CHARACTERS
    assert validate_format("YYYY:MM", Granularity.month, engine) == ILLEGAL_CHARACTERS


def test_validate_format_reports_round_trip_failure_for_day() -> None:
    stub = StubEngine(lambda dt: "x", parses=False)
    assert validate_format("YYYY", Granularity.day, stub) == PARSE_FAILED


def test_validate_format_skips_round_trip_for_coarser_granularities() -> None:
    stub = StubEngine(lambda dt: "x", parses=False)
    assert validate_format("YYYY", Granularity.week, stub) == ""
    assert stub.format_calls == 0


# ---------------------------------------------------------------------------
# validate_format_complexity
# ---------------------------------------------------------------------------


def test_complexity_valid_for_full_date(engine: PendulumEngine) -> None:
    assert validate_format_complexity("YYYY-MM-DD", Granularity.day, engine) is Complexity.valid


def test_complexity_nested_full_date_is_valid(engine: PendulumEngine) -> None:
    assert validate_format_complexity("YYYY/MM/DD", Granularity.day, engine) is Complexity.valid


def test_complexity_fragile_when_year_is_missing(engine: PendulumEngine) -> None:
    assert validate_format_complexity("MM-DD", Granularity.day, engine) is Complexity.fragile_basename


def test_complexity_fragile_for_month_only_weekly_format(engine: PendulumEngine) -> None:
    assert validate_format_complexity("MM", Granularity.week, engine) is Complexity.fragile_basename


def test_complexity_fragile_for_week_number_that_resets_yearly(capsys) -> None:
    stub = StubEngine(lambda dt: f"W{dt.isocalendar()[1]:02d}")
    assert validate_format_complexity("[W]ww", Granularity.week, stub) is Complexity.fragile_basename

    err = capsys.readouterr().err
    assert "same output" in err
    assert "[W]ww" in err


def test_complexity_fragile_for_week_number_with_pendulum(engine: PendulumEngine) -> None:
    assert validate_format_complexity("[W]ww", Granularity.week, engine) is Complexity.fragile_basename


def test_complexity_valid_for_week_year_and_number(engine: PendulumEngine) -> None:
    assert validate_format_complexity("gggg-[W]ww", Granularity.week, engine) is Complexity.valid


def test_complexity_loose_parsing_short_circuits_probe() -> None:
    stub = StubEngine(lambda dt: dt.isoformat(), parses=False)
    assert validate_format_complexity("ddd", Granularity.day, stub) is Complexity.loose_parsing
    assert stub.format_calls == 1


def test_complexity_probe_is_bounded() -> None:
    stub = StubEngine(lambda dt: dt.isoformat())
    assert validate_format_complexity("x", Granularity.day, stub) is Complexity.valid
    assert stub.format_calls == UNIQUENESS_WINDOW + 1


def test_complexity_stops_at_first_collision() -> None:
    stub = StubEngine(lambda dt: str(dt.toordinal() % 3))
    assert validate_format_complexity("x", Granularity.day, stub) is Complexity.fragile_basename
    assert stub.format_calls == 4


# ---------------------------------------------------------------------------
# get_date_input / date_from_file
# ---------------------------------------------------------------------------


def test_get_date_input_rebuilds_nested_key_for_fragile_format() -> None:
    stub = StubEngine(lambda dt: dt.strftime("%d"))
    note = NoteFile.from_path("notes/2024/03/15.md")
    assert get_date_input(note, "YYYY/MM/DD", Granularity.day, stub) == "2024/03/15"


def test_get_date_input_ignores_separators_inside_literals(monkeypatch) -> None:
    monkeypatch.setattr(
        validation, "validate_format_complexity", lambda *a, **kw: Complexity.fragile_basename
    )
    note = NoteFile.from_path("notes/2024/03/15.md")
    assert get_date_input(note, "MM[a/b]/DD", Granularity.day) == "03/15"


def test_get_date_input_returns_basename_for_non_fragile_format(engine: PendulumEngine) -> None:
    note = NoteFile.from_path("notes/deep/er/2024/03/15.md")
    assert get_date_input(note, "YYYY/MM/DD", Granularity.day, engine) == "15"

    flat = NoteFile.from_path("a/b/c/2024-03-15.md")
    assert get_date_input(flat, "YYYY-MM-DD", Granularity.day, engine) == "2024-03-15"


def test_get_date_input_uses_folders_for_fragile_pendulum_format(engine: PendulumEngine) -> None:
    note = NoteFile.from_path("daily/2024/03/15.md")
    assert get_date_input(note, "MM/DD", Granularity.day, engine) == "03/15"


def test_date_from_file_returns_period_start(engine: PendulumEngine) -> None:
    note = NoteFile.from_path("daily/2024-03-15.md")
    period = date_from_file(note, "YYYY-MM-DD", Granularity.day, engine)
    assert period is not None
    assert period.date().isoformat() == "2024-03-15"
    assert (period.hour, period.minute) == (0, 0)


def test_date_from_file_for_month_granularity(engine: PendulumEngine) -> None:
    note = NoteFile.from_path("monthly/2024-03.md")
    period = date_from_file(note, "YYYY-MM", Granularity.month, engine)
    assert period is not None
    assert (period.year, period.month, period.day) == (2024, 3, 1)


def test_date_from_file_for_week_granularity(engine: PendulumEngine) -> None:
    note = NoteFile.from_path("weekly/2024-W11.md")
    period = date_from_file(note, "gggg-[W]ww", Granularity.week, engine)
    assert period is not None
    assert period.date().isoformat() == "2024-03-11"


def test_date_from_file_returns_none_for_other_notes(engine: PendulumEngine) -> None:
    note = NoteFile.from_path("daily/Shopping list.md")
    assert date_from_file(note, "YYYY-MM-DD", Granularity.day, engine) is None


# ---------------------------------------------------------------------------
# validate_template / validate_folder / validate_settings
# ---------------------------------------------------------------------------


def test_validate_template(vault: LocalVault) -> None:
    assert validate_template(vault, "") == ""
    assert validate_template(vault, "templates/daily") == ""
    assert validate_template(vault, "daily") == ""
    assert validate_template(vault, "templates/missing") == TEMPLATE_NOT_FOUND


def test_validate_folder(vault: LocalVault) -> None:
    assert validate_folder(vault, "") == ""
    assert validate_folder(vault, "/") == ""
    assert validate_folder(vault, "daily") == ""
    assert validate_folder(vault, "/daily/") == ""
    assert validate_folder(vault, "weekly") == FOLDER_NOT_FOUND


def test_validate_settings_reports_enabled_granularities(vault: LocalVault, engine: PendulumEngine) -> None:
    settings = {
        Granularity.day: PeriodSettings(enabled=True, format="YYYY-MM-DD", folder="daily", template="templates/daily"),
        Granularity.week: PeriodSettings(enabled=True, format="??", folder="weekly"),
        Granularity.month: PeriodSettings(enabled=False, format="??"),
    }

    reports = validate_settings(vault, settings, engine)

    assert set(reports) == {Granularity.day, Granularity.week}

    day = reports[Granularity.day]
    assert day.ok is True
    assert day.complexity is Complexity.valid

    week = reports[Granularity.week]
    assert week.ok is False
    assert week.format_error == ILLEGAL_CHARACTERS
    assert week.complexity is None
    assert week.folder_error == FOLDER_NOT_FOUND
