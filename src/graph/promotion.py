"""
Anchor promotion and reference migration.

promote(board_id, task_id) upgrades a fallback identifier to an anchor one:

1. re-extract the board and locate the task (missing → return task_id)
2. pick a token not used by any anchor in the document
3. append `` ^token`` to the task's line and write the document
4. rename task_id → path::^token in edges, layout and nodeStatus
5. persist settings

Steps 2–5 run under the board lock so no other mutation of the board can
observe a half-migrated state.
"""

import logging
from typing import Callable, Optional

from models.board import BoardData
from parsers.line_normalizer import detect_anchor, strip_anchor, with_anchor
from utils.ids import anchor_id, generate_anchor_token, is_anchor_id

log = logging.getLogger(__name__)

# Attempts at drawing an unused token before giving up
_MAX_TOKEN_ATTEMPTS = 32


def migrate_references(data: BoardData, old_id: str, new_id: str) -> int:
    """
    Rewrite every reference to ``old_id`` in a board's data.

    Returns the number of references changed. Entry counts are preserved;
    if ``new_id`` already has a layout or status entry, the migrated entry
    replaces it.
    """
    if old_id == new_id:
        return 0
    changed = 0

    for edge in data.edges:
        if edge.source == old_id:
            edge.source = new_id
            changed += 1
        if edge.target == old_id:
            edge.target = new_id
            changed += 1

    if old_id in data.layout:
        data.layout = {
            (new_id if k == old_id else k): v
            for k, v in data.layout.items()
            if k != new_id
        }
        changed += 1

    if old_id in data.node_status:
        data.node_status = {
            (new_id if k == old_id else k): v
            for k, v in data.node_status.items()
            if k != new_id
        }
        changed += 1

    return changed


def fresh_token(
    document_text: str,
    generate: Callable[[], str] = generate_anchor_token,
) -> Optional[str]:
    """Draw a token that no line of ``document_text`` already uses as anchor."""
    taken = {detect_anchor(line.rstrip("\r")) for line in document_text.split("\n")}
    taken.discard(None)
    for _ in range(_MAX_TOKEN_ATTEMPTS):
        token = generate()
        if token not in taken:
            return token
    return None


class AnchorPromoter:
    """
    Args:
        store: GraphStore
        extractor: TaskExtractor
        documents: VaultDocuments
        index: ListIndex (invalidated after each document write)
        notices: Notices sink for I/O failures
        generate: token generator, replaceable for tests
    """

    def __init__(
        self,
        store,
        extractor,
        documents,
        index=None,
        notices=None,
        generate: Callable[[], str] = generate_anchor_token,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._documents = documents
        self._index = index
        self._notices = notices
        self._generate = generate

    def promote(self, board_id: str, task_id: str) -> str:
        """
        Upgrade ``task_id`` to anchor form and migrate the board's references.

        Returns the new identifier, or ``task_id`` unchanged when it is
        already anchored, cannot be found, or the document cannot be edited.
        """
        if is_anchor_id(task_id):
            return task_id

        board = self._store.find_board(board_id)
        if board is None:
            log.debug("promote: unknown board %s", board_id)
            return task_id

        with self._store.board_lock(board_id):
            task = self._extractor.find_task(board, task_id)
            if task is None:
                log.debug("promote: %s not found on board %s", task_id, board_id)
                return task_id

            with self._documents.lock:
                token = self._anchor_line(task.path, task.line, task.raw_text)
            if token is None:
                return task_id

            new_id = anchor_id(task.path, token)
            count = migrate_references(board.data, task_id, new_id)
            try:
                self._store.save()
            except OSError:
                # The anchor is already on disk, so the in-memory migration
                # stays; the next successful save persists it.
                log.exception("promote: cannot save settings after promoting %s", task_id)
                self._notify("Failed to save board data")

        log.info("Promoted %s -> %s (%d references)", task_id, new_id, count)
        return new_id

    def _anchor_line(self, path: str, line_index: int, expected: str) -> Optional[str]:
        """Embed an anchor on one line; return its token or None if skipped."""
        try:
            content = self._documents.read(path)
        except LookupError:
            return None
        except (OSError, UnicodeDecodeError):
            log.exception("promote: cannot read %s", path)
            self._notify(f"Failed to read {path}")
            return None

        lines = content.split("\n")
        if line_index >= len(lines):
            log.warning("promote: line %d out of range in %s", line_index, path)
            return None
        line = lines[line_index]
        body = line.rstrip("\r")

        # Anchored by another writer since extraction: adopt that token
        existing = detect_anchor(body)
        if existing is not None and strip_anchor(body).rstrip() == expected.rstrip():
            return existing

        if body != expected:
            log.warning("promote: line %d of %s changed since extraction", line_index, path)
            return None

        token = fresh_token(content, self._generate)
        if token is None:
            log.error("promote: could not draw an unused anchor token for %s", path)
            return None

        lines[line_index] = with_anchor(line, token)
        try:
            self._documents.write(path, "\n".join(lines))
        except (LookupError, OSError):
            log.exception("promote: cannot write %s", path)
            self._notify(f"Failed to update {path}")
            return None
        if self._index is not None:
            self._index.invalidate(path)
        return token

    def _notify(self, message: str) -> None:
        if self._notices is not None:
            self._notices.error(message)
