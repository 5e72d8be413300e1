"""
Document store over a vault directory on disk.

Documents are addressed by vault-relative POSIX paths ("Projects/x.md").
Reads and writes use UTF-8 and keep line endings exactly as found
(``newline=""``), so line indices match what the list index reports.
"""

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Set

log = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"


class DocumentNotFound(LookupError):
    """Raised when a path does not name a document inside the vault."""


class VaultDocuments:
    """
    Enumerate, read and write markdown documents under ``vault_root``.

    Raises DocumentNotFound for unknown paths and lets OSError propagate;
    callers decide how to surface failures.
    """

    def __init__(self, vault_root: Path, exclude_dirs: Optional[Iterable[str]] = None) -> None:
        self._root = Path(vault_root)
        self._exclude_dirs: Set[str] = set(exclude_dirs or ())
        self._lock = threading.RLock()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def lock(self) -> threading.RLock:
        """Held around read-modify-write sequences on a document."""
        return self._lock

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def list_documents(self) -> List[str]:
        """Return the relative paths of all markdown documents, sorted."""
        paths = []
        for path in self._root.rglob(f"*{DOCUMENT_SUFFIX}"):
            try:
                rel = path.relative_to(self._root)
            except ValueError:
                continue
            if any(part in self._exclude_dirs for part in rel.parts[:-1]):
                continue
            if path.is_file():
                paths.append(rel.as_posix())
        return sorted(paths)

    def resolve(self, path: str) -> Path:
        """Map a relative document path to a file, rejecting escapes from the vault."""
        full = (self._root / path).resolve()
        try:
            full.relative_to(self._root.resolve())
        except ValueError:
            raise DocumentNotFound(path)
        return full

    def exists(self, path: str) -> bool:
        try:
            return self.resolve(path).is_file()
        except DocumentNotFound:
            return False

    def mtime(self, path: str) -> Optional[float]:
        try:
            return self.resolve(path).stat().st_mtime
        except (DocumentNotFound, OSError):
            return None

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def _existing(self, path: str) -> Path:
        full = self.resolve(path)
        if not full.is_file():
            raise DocumentNotFound(path)
        return full

    def read(self, path: str) -> str:
        full = self._existing(path)
        with open(full, "r", encoding="utf-8", newline="") as fh:
            return fh.read()

    def write(self, path: str, text: str) -> None:
        full = self._existing(path)
        with self._lock:
            with open(full, "w", encoding="utf-8", newline="") as fh:
                fh.write(text)
        log.debug("Wrote %s (%d chars)", path, len(text))

    def append(self, path: str, text: str) -> str:
        """
        Append ``text`` to the end of a document, inserting a line break
        first when the document is non-empty and does not end with one.

        Returns the exact text that was appended.
        """
        full = self._existing(path)
        with self._lock:
            current = self.read(path)
            prefix = "\n" if current and not current.endswith("\n") else ""
            with open(full, "a", encoding="utf-8", newline="") as fh:
                fh.write(prefix + text)
        log.debug("Appended to %s", path)
        return prefix + text
