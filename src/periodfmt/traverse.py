# Note discovery and glob filtering for periodfmt.
# This module centralizes all path discovery logic so the vault index and the
# scan command see the same set of files.
#
# No mutation is allowed here.

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterator, List, Optional


def _matches_any(path: Path, patterns: List[str]) -> bool:
    # Check whether a path matches any of the provided glob patterns.
    # Both the basename and the full path string are tested.
    name = path.name
    full = path.as_posix()

    for pat in patterns:
        if fnmatch.fnmatch(name, pat) or fnmatch.fnmatch(full, pat):
            return True

    return False


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def iter_note_files(
    folder: Path,
    recursive: bool = True,
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    extensions: Optional[List[str]] = None,
) -> Iterator[Path]:
    # Yield note files below a folder in a stable (sorted) order.
    # Dot-directories such as .obsidian and .git are never entered.
    include = include or []
    exclude = exclude or []
    exts = {e.lower().lstrip(".") for e in (extensions or ["md"])}

    if not folder.is_dir():
        return

    if recursive:
        candidates = []
        for root, dirs, files in os.walk(folder):
            dirs[:] = sorted(d for d in dirs if not _is_hidden(d))
            candidates.extend(Path(root) / name for name in sorted(files))
    else:
        candidates = sorted(f for f in folder.iterdir() if f.is_file())

    for f in candidates:
        if _is_hidden(f.name):
            continue
        if f.suffix.lower().lstrip(".") not in exts:
            continue
        if exclude and _matches_any(f, exclude):
            continue
        if include and not _matches_any(f, include):
            continue
        yield f
