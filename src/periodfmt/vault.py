# Vault lookups for periodfmt.
# The validators only need two reads: resolve a link to a file, and look up a
# file or folder by path. Both live behind the Vault protocol.
#
# LocalVault is a read-only view over a directory on disk.

from __future__ import annotations

import re
import unicodedata
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol

from periodfmt.traverse import iter_note_files

_SEPARATORS_RE = re.compile(r"[\\/]+")
_EDGE_SLASHES_RE = re.compile(r"^/+|/+$")

# Link targets are not limited to notes.
_ALL_EXTENSIONS = [
    "md", "canvas", "txt", "pdf", "png", "jpg", "jpeg", "gif", "svg", "webp",
]


def normalize_path(path: str) -> str:
    """Normalize a user-entered vault path.

    Separators collapse to a single ``/``, leading and trailing slashes are
    dropped, non-breaking spaces become plain spaces and unicode is NFC
    normalized. The vault root is ``/``.
    """
    path = _SEPARATORS_RE.sub("/", path)
    path = _EDGE_SLASHES_RE.sub("", path)
    path = path.replace("\u00a0", " ").replace("\u202f", " ")
    if path == "":
        path = "/"
    return unicodedata.normalize("NFC", path)


class Vault(Protocol):
    def get_first_linkpath_dest(self, linkpath: str, source_path: str = "") -> Optional[Path]:
        ...

    def get_abstract_file_by_path(self, path: str) -> Optional[Path]:
        ...


class LocalVault:
    # Filesystem-backed vault rooted at a directory.
    # The note index is built on first use and not refreshed.
    def __init__(self, root: Path):
        self.root = Path(root)
        self._index: Optional[List[str]] = None

    def _files(self) -> List[str]:
        if self._index is None:
            self._index = [
                p.relative_to(self.root).as_posix()
                for p in iter_note_files(self.root, recursive=True, extensions=_ALL_EXTENSIONS)
            ]
        return self._index

    def get_abstract_file_by_path(self, path: str) -> Optional[Path]:
        path = normalize_path(path)
        if path == "/":
            return self.root
        target = self.root / path
        return target if target.exists() else None

    def get_first_linkpath_dest(self, linkpath: str, source_path: str = "") -> Optional[Path]:
        # Links may carry a "#heading" subpath and usually omit ".md".
        link = linkpath.split("#", 1)[0].strip()
        if not link:
            return None
        link = normalize_path(link)
        if not PurePosixPath(link).suffix:
            link = f"{link}.md"

        # Relative to the linking note first, then from the vault root.
        if source_path:
            parent = PurePosixPath(normalize_path(source_path)).parent
            candidate = self.root / parent / link
            if candidate.is_file():
                return candidate
        candidate = self.root / link
        if candidate.is_file():
            return candidate

        # Fall back to the shortest path ending with the link.
        matches = [
            rel for rel in self._files()
            if rel == link or rel.endswith(f"/{link}")
        ]
        if not matches:
            return None
        best = min(matches, key=lambda rel: (rel.count("/"), rel))
        return self.root / best
