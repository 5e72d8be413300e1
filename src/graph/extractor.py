"""
Task extraction for a board.

extract(board) walks candidate documents, reads list items from the
structural index and applies the board filters in a fixed order:

    folder prefix  →  status character  →  required tags  →  excluded tags

Folder filtering happens before any content read. Identity is resolved per
line with a per-pass ``assigned`` set so fallback ids never collide.
"""

import logging
from typing import Iterator, List, Optional, Set

from models.board import Board, BoardFilters
from models.task import Task
from parsers.identity import resolve_task_id
from parsers.line_normalizer import display_text

log = logging.getLogger(__name__)


def folder_matches(path: str, filters: BoardFilters) -> bool:
    return not filters.folders or any(path.startswith(folder) for folder in filters.folders)


def line_passes(status: str, line: str, filters: BoardFilters) -> bool:
    """Apply status, tag and excluded-tag predicates; first failure wins."""
    if filters.status and status not in filters.status:
        return False
    if filters.tags and not any(tag in line for tag in filters.tags):
        return False
    if filters.exclude_tags and any(tag in line for tag in filters.exclude_tags):
        return False
    return True


class TaskExtractor:
    """
    Read-only extractor over a document store and its list index.

    Args:
        documents: VaultDocuments-like store (list_documents, read)
        index: ListIndex-like structural index (task_items)
        notices: optional Notices sink for unreadable documents
    """

    def __init__(self, documents, index, notices=None) -> None:
        self._documents = documents
        self._index = index
        self._notices = notices

    def candidate_documents(self, filters: BoardFilters) -> List[str]:
        return [p for p in self._documents.list_documents() if folder_matches(p, filters)]

    def iter_tasks(self, board: Board) -> Iterator[Task]:
        filters = board.filters
        assigned: Set[str] = set()

        for path in self.candidate_documents(filters):
            items = self._index.task_items(path)
            if not items:
                continue
            try:
                lines = self._documents.read(path).split("\n")
            except LookupError:
                continue
            except (OSError, UnicodeDecodeError) as e:
                log.warning("Skipping unreadable document %s: %s", path, e)
                if self._notices is not None:
                    self._notices.error(f"Failed to read {path}")
                continue

            for item in items:
                if item.line >= len(lines):
                    continue
                raw = lines[item.line].rstrip("\r")
                if not line_passes(item.task, raw, filters):
                    continue
                task_id = resolve_task_id(path, raw, assigned)
                assigned.add(task_id)
                yield Task(
                    id=task_id,
                    text=display_text(raw),
                    status=item.task,
                    path=path,
                    line=item.line,
                    raw_text=raw,
                )

    def extract(self, board: Board) -> List[Task]:
        tasks = list(self.iter_tasks(board))
        log.debug("Extracted %d tasks for board %s", len(tasks), board.id)
        return tasks

    def find_task(self, board: Board, task_id: str) -> Optional[Task]:
        """Re-extract and return the task currently holding ``task_id``."""
        for task in self.iter_tasks(board):
            if task.id == task_id:
                return task
        return None
