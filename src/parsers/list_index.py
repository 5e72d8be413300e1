"""
Per-document index of list items.

For each document the index reports every list item's line range and, for
checklist items, the checkbox character. It plays the role of the host
application's metadata cache: extraction never re-parses documents itself
beyond single-line normalisation.

Entries are cached per document and re-read when the document mtime moves.
"""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

log = logging.getLogger(__name__)

_LIST_ITEM_RE = re.compile(r"^(\s*)(?:[-*+]|\d+[.)])(?:\s+|$)(?:\[(.)\](?=\s|$))?")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")


@dataclass(frozen=True)
class ListItem:
    """A list item spanning lines ``line``..``end_line`` (inclusive, 0-based)."""

    line: int
    end_line: int
    task: Optional[str] = None

    @property
    def is_task(self) -> bool:
        return self.task is not None


def _indent_width(indent: str) -> int:
    return len(indent.replace("\t", "    "))


def scan_list_items(content: str) -> List[ListItem]:
    """
    Locate list items in markdown text.

    An item continues over following lines that are blank or indented
    deeper than its bullet and are not themselves list items. Fenced code
    blocks are skipped.
    """
    lines = content.split("\n")
    items: List[ListItem] = []
    open_item: Optional[Tuple[int, int, Optional[str]]] = None  # (start, indent, task)
    last_content = -1
    in_fence = False
    fence = ""

    def close(end: int) -> None:
        nonlocal open_item
        if open_item is not None:
            start, _, task = open_item
            items.append(ListItem(line=start, end_line=max(start, end), task=task))
            open_item = None

    for idx, raw in enumerate(lines):
        line = raw.rstrip("\r")
        fm = _FENCE_RE.match(line)
        if fm:
            if not in_fence:
                in_fence, fence = True, fm.group(1)
            elif fm.group(1) == fence:
                in_fence = False
            if open_item is not None and _indent_width(line[: len(line) - len(line.lstrip())]) <= open_item[1]:
                close(last_content)
            continue
        if in_fence:
            continue

        m = _LIST_ITEM_RE.match(line)
        if m:
            close(last_content)
            open_item = (idx, _indent_width(m.group(1)), m.group(2))
            last_content = idx
            continue

        if not line.strip():
            continue

        if open_item is not None:
            indent = _indent_width(line[: len(line) - len(line.lstrip())])
            if indent > open_item[1]:
                last_content = idx
                continue
            close(last_content)

    close(last_content)
    return items


class ListIndex:
    """Cached list-item index over a document store."""

    def __init__(self, documents) -> None:
        self._documents = documents
        self._lock = threading.RLock()
        self._cache: Dict[str, Tuple[Optional[float], List[ListItem]]] = {}

    def items(self, path: str) -> List[ListItem]:
        """
        Return list items for a document, or an empty list if it cannot be read.
        """
        mtime = self._documents.mtime(path)
        with self._lock:
            cached = self._cache.get(path)
            if cached is not None and mtime is not None and cached[0] == mtime:
                return cached[1]
        try:
            content = self._documents.read(path)
        except (LookupError, OSError, UnicodeDecodeError):
            log.warning("Cannot index %s", path, exc_info=True)
            self.invalidate(path)
            return []
        items = scan_list_items(content)
        with self._lock:
            self._cache[path] = (mtime, items)
        return items

    def task_items(self, path: str) -> List[ListItem]:
        return [item for item in self.items(path) if item.is_task]

    def invalidate(self, path: Optional[str] = None) -> None:
        """Drop one cached document, or every document when path is None."""
        with self._lock:
            if path is None:
                self._cache.clear()
            else:
                self._cache.pop(path, None)
