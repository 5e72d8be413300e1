"""
TaskGraph: the single object the outer surfaces talk to.

It wires the document store, list index, extractor, graph store and
promoter together, and owns the two document-editing operations that are
not promotion: appending a new task and rewriting a task's text.
"""

import logging
from typing import List, Optional

from cache.board_tasks import BoardTaskCache
from graph.extractor import TaskExtractor
from graph.promotion import AnchorPromoter, fresh_token
from models.task import Task
from parsers.line_normalizer import render_task_line, replace_text
from utils.ids import anchor_id, generate_anchor_token
from utils.notices import Notices

log = logging.getLogger(__name__)


def _is_single_line(text: str) -> bool:
    return "\n" not in text and "\r" not in text


class TaskGraph:
    def __init__(self, documents, index, store, notices: Optional[Notices] = None, generate=None) -> None:
        self.documents = documents
        self.index = index
        self.store = store
        self.notices = notices or Notices()
        self._generate = generate or generate_anchor_token
        self.extractor = TaskExtractor(documents, index, self.notices)
        self.promoter = AnchorPromoter(
            store, self.extractor, documents, index, self.notices, self._generate
        )
        self.tasks = BoardTaskCache(self)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def get_tasks(self, board_id: Optional[str] = None) -> List[Task]:
        """Extract tasks for a board (unknown ids fall back to the first board)."""
        return self.extractor.extract(self.store.get_board(board_id))

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def promote(self, board_id: str, task_id: str) -> str:
        return self.promoter.promote(board_id, task_id)

    # ------------------------------------------------------------------
    # Document edits
    # ------------------------------------------------------------------

    def append_task(self, path: str, text: str) -> Optional[str]:
        """
        Append ``- [ ] text ^token`` to a document.

        Returns the anchor identifier of the new task, or None when the
        text spans lines or the document is missing or cannot be written.
        """
        if not _is_single_line(text):
            self.notices.error("Task text must be a single line.")
            return None
        if not self.documents.exists(path):
            self.notices.error("Source file not found!")
            return None
        try:
            with self.documents.lock:
                content = self.documents.read(path)
                token = fresh_token(content, self._generate)
                if token is None:
                    self.notices.error("Failed to create task.")
                    return None
                self.documents.append(path, render_task_line(text, token))
        except (LookupError, OSError, UnicodeDecodeError):
            log.exception("append_task failed for %s", path)
            self.notices.error("Failed to create task.")
            return None
        self.index.invalidate(path)
        new_id = anchor_id(path, token)
        log.info("Appended task %s", new_id)
        return new_id

    def update_task_text(self, path: str, line_index: int, new_text: str) -> bool:
        """
        Replace the text of one task line, keeping checkbox prefix and anchor.

        Returns False (without writing) for multi-line text, missing
        documents or an out-of-range line index.
        """
        if not _is_single_line(new_text):
            self.notices.error("Task text must be a single line.")
            return False
        if not self.documents.exists(path):
            return False
        try:
            with self.documents.lock:
                lines = self.documents.read(path).split("\n")
                if line_index < 0 or line_index >= len(lines):
                    log.warning("update_task_text: line %d out of range in %s", line_index, path)
                    return False
                lines[line_index] = replace_text(lines[line_index], new_text)
                self.documents.write(path, "\n".join(lines))
        except (LookupError, OSError, UnicodeDecodeError):
            log.exception("update_task_text failed for %s", path)
            self.notices.error("Failed to update task.")
            return False
        self.index.invalidate(path)
        self.notices.push("Task updated!")
        return True
