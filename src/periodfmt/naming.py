# Filename legality and format-string structure helpers for periodfmt.
# This module is pure logic and must remain side-effect free.
#
# Nothing here knows about dates; see dates.py for the engine boundary.

from __future__ import annotations

import re

from periodfmt.models import NoteFile


# Characters rejected on Windows, the most restrictive filesystem we target.
# Forward slash is allowed because formats may describe nested folders.
_ILLEGAL_RE = re.compile(r'[?<>\\:*|"]')

# C0 and C1 control characters are never valid in filenames.
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x80-\x9f]")

# "." and ".." style names.
_DOTS_ONLY_RE = re.compile(r"^\.+$")

# Device names, with or without an extension.
_WINDOWS_RESERVED_RE = re.compile(
    r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$",
    re.IGNORECASE,
)

# Literal text inside brackets is emitted as-is by the formatter.
_BRACKETED_RE = re.compile(r"\[[^\]]*\]")

# A backslash escapes exactly the next character.
_ESCAPED_CHAR_RE = re.compile(r"\\.", re.DOTALL)


def is_valid_filename(filename: str) -> bool:
    # Check a single name (not a path) against the strictest filesystem rules.
    return not (
        _ILLEGAL_RE.search(filename)
        or _CONTROL_CHARS_RE.search(filename)
        or _DOTS_ONLY_RE.match(filename)
        or _WINDOWS_RESERVED_RE.match(filename)
    )


def remove_escaped_characters(fmt: str) -> str:
    # Strip literal spans so only structural tokens remain.
    # Brackets go first so escapes inside them disappear with the bracket.
    # Unbalanced brackets are left alone.
    without_brackets = _BRACKETED_RE.sub("", fmt)
    return _ESCAPED_CHAR_RE.sub("", without_brackets)


def path_without_extension(file: NoteFile) -> str:
    # Files without an extension keep their full path.
    if not file.extension:
        return file.path
    return file.path[: -(len(file.extension) + 1)]
