# Shared data models for periodfmt.
# Lives in its own module to avoid circular imports between cli, core and validation.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional


class Granularity(str, Enum):
    day = "day"
    week = "week"
    month = "month"
    quarter = "quarter"
    year = "year"


class Complexity(str, Enum):
    valid = "valid"
    fragile_basename = "fragile-basename"
    loose_parsing = "loose-parsing"


# Validator messages. An empty string always means "ok".
ILLEGAL_CHARACTERS = "Format contains illegal characters"
PARSE_FAILED = "Failed to parse format"
TEMPLATE_NOT_FOUND = "Template file not found"
FOLDER_NOT_FOUND = "Folder not found in vault"


@dataclass(frozen=True)
class NoteFile:
    # Vault-relative POSIX path, e.g. "notes/2024/03/15.md".
    path: str
    basename: str
    extension: str

    @classmethod
    def from_path(cls, path: str) -> "NoteFile":
        p = PurePosixPath(path.replace("\\", "/"))
        return cls(path=str(p), basename=p.stem, extension=p.suffix.lstrip("."))


@dataclass(frozen=True)
class PeriodSettings:
    enabled: bool = False
    format: str = ""
    folder: str = ""
    template: str = ""


@dataclass(frozen=True)
class SettingsReport:
    granularity: Granularity
    format_error: str
    complexity: Optional[Complexity]
    folder_error: str
    template_error: str

    @property
    def ok(self) -> bool:
        return not (self.format_error or self.folder_error or self.template_error)
