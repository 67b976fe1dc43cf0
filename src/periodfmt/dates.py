# Date engine boundary for periodfmt.
# Validators never touch a date library directly; they go through a DateEngine
# so tests can pin the clock or substitute a scripted engine.
#
# The default engine wraps pendulum. pendulum covers the moment.js tokens
# except the week family, which is handled here on ISO week rules.

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol, Tuple

import pendulum
from pendulum.parsing.exceptions import ParserError

from periodfmt.models import Granularity



class DateEngine(Protocol):
    """Formatting, parsing and period arithmetic used by the validators."""

    def now(self) -> datetime:
        ...

    def format(self, dt: datetime, fmt: str) -> str:
        ...

    def parse(self, text: str, fmt: str, strict: bool = True) -> Optional[datetime]:
        ...

    def start_of(self, dt: datetime, granularity: Granularity) -> datetime:
        ...

    def add(self, dt: datetime, granularity: Granularity, count: int = 1) -> datetime:
        ...


# pendulum keyword used by DateTime.add for each granularity.
_ADD_UNITS = {
    Granularity.day: ("days", 1),
    Granularity.week: ("weeks", 1),
    Granularity.month: ("months", 1),
    Granularity.quarter: ("months", 3),
    Granularity.year: ("years", 1),
}


# Literal spans and the week tokens pendulum does not implement.
# "w"/"gggg" (locale weeks) follow the same ISO rules as "W"/"GGGG".
_WEEK_SPLIT_RE = re.compile(r"\[[^\]]*\]|\\.|gggg|GGGG|gg|GG|wo|Wo|ww|WW|w|W", re.DOTALL)

_WEEK_PATTERNS = {
    "w": r"\d{1,2}",
    "W": r"\d{1,2}",
    "ww": r"\d{2}",
    "WW": r"\d{2}",
    "wo": r"\d{1,2}(?:st|nd|rd|th)",
    "Wo": r"\d{1,2}(?:st|nd|rd|th)",
    "gggg": r"\d{4}",
    "GGGG": r"\d{4}",
    "gg": r"\d{2}",
    "GG": r"\d{2}",
}

_LETTER_RE = re.compile(r"[A-Za-z]")


def _split_format(fmt: str) -> List[Tuple[str, str]]:
    # Break a format into ("literal", text), ("week", token) and
    # ("chunk", pendulum format) parts. Letter-free chunks are literal.
    parts: List[Tuple[str, str]] = []
    pos = 0

    def chunk(text: str) -> None:
        parts.append(("chunk" if _LETTER_RE.search(text) else "literal", text))

    for m in _WEEK_SPLIT_RE.finditer(fmt):
        if m.start() > pos:
            chunk(fmt[pos:m.start()])
        token = m.group(0)
        if token.startswith("["):
            parts.append(("literal", token[1:-1]))
        elif token.startswith("\\"):
            parts.append(("literal", token[1:]))
        else:
            parts.append(("week", token))
        pos = m.end()

    if pos < len(fmt):
        chunk(fmt[pos:])
    return parts


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _week_value(dt: datetime, token: str) -> str:
    week_year, week, _ = dt.isocalendar()
    if token in ("w", "W"):
        return str(week)
    if token in ("ww", "WW"):
        return f"{week:02d}"
    if token in ("wo", "Wo"):
        return _ordinal(week)
    if token in ("gggg", "GGGG"):
        return f"{week_year:04d}"
    return f"{week_year % 100:02d}"


class PendulumEngine:
    """DateEngine backed by pendulum.

    Args:
        clock: Zero-argument callable returning the current time. Defaults to
            ``pendulum.now`` in the local timezone.
        locale: Locale used for month and weekday names.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        locale: Optional[str] = None,
    ):
        self._clock = clock or pendulum.now
        self.locale = locale

    def now(self) -> pendulum.DateTime:
        return pendulum.instance(self._clock())

    def format(self, dt: datetime, fmt: str) -> str:
        dt = pendulum.instance(dt)
        parts = _split_format(fmt)
        if not any(kind == "week" for kind, _ in parts):
            return dt.format(fmt, locale=self.locale)

        out = []
        for kind, value in parts:
            if kind == "week":
                out.append(_week_value(dt, value))
            elif kind == "literal":
                out.append(value)
            else:
                out.append(dt.format(value, locale=self.locale))
        return "".join(out)

    def parse(self, text: str, fmt: str, strict: bool = True) -> Optional[pendulum.DateTime]:
        # Anchored from_format is the strict path.
        # Lenient parsing accepts anything pendulum can read on its own.
        tz = self.now().timezone or pendulum.UTC
        parts = _split_format(fmt)
        try:
            if any(kind == "week" for kind, _ in parts):
                parsed = self._parse_weeks(text, parts, tz)
            else:
                parsed = pendulum.from_format(text, fmt, tz=tz, locale=self.locale)
        except (ParserError, ValueError):
            parsed = None
        if parsed is not None or strict:
            return parsed

        try:
            parsed = pendulum.parse(text, strict=False)
        except (ParserError, ValueError):
            return None
        return parsed if isinstance(parsed, pendulum.DateTime) else None

    def _parse_weeks(self, text: str, parts: List[Tuple[str, str]], tz) -> Optional[pendulum.DateTime]:
        # A week token pins the result to the Monday of that ISO week.
        # Other chunks are parsed by pendulum and only contribute the year.
        pattern = "".join(
            re.escape(value) if kind == "literal"
            else f"({_WEEK_PATTERNS[value]})" if kind == "week"
            else "(.+?)"
            for kind, value in parts
        )
        match = re.fullmatch(pattern, text)
        if match is None:
            return None

        captured = [(kind, value) for kind, value in parts if kind != "literal"]
        week_year: Optional[int] = None
        week = 1
        chunk_year: Optional[int] = None
        for (kind, value), group in zip(captured, match.groups()):
            if kind == "chunk":
                chunk_year = pendulum.from_format(group, value, tz=tz, locale=self.locale).year
                continue
            number = int(re.match(r"\d+", group).group(0))
            if value in ("gggg", "GGGG"):
                week_year = number
            elif value in ("gg", "GG"):
                week_year = number + (2000 if number < 69 else 1900)
            else:
                week = number

        if week_year is None:
            week_year = chunk_year if chunk_year is not None else self.now().isocalendar()[0]

        monday = date.fromisocalendar(week_year, week, 1)
        return pendulum.datetime(monday.year, monday.month, monday.day, tz=tz)

    def start_of(self, dt: datetime, granularity: Granularity) -> pendulum.DateTime:
        dt = pendulum.instance(dt)
        if granularity is Granularity.quarter:
            month_start = dt.start_of("month")
            return month_start.subtract(months=(month_start.month - 1) % 3)
        return dt.start_of(granularity.value)

    def add(self, dt: datetime, granularity: Granularity, count: int = 1) -> pendulum.DateTime:
        unit, size = _ADD_UNITS[granularity]
        return pendulum.instance(dt).add(**{unit: size * count})


_default_engine: Optional[DateEngine] = None


def default_engine() -> DateEngine:
    # Created lazily so importing periodfmt never reads the clock.
    global _default_engine
    if _default_engine is None:
        _default_engine = PendulumEngine()
    return _default_engine
