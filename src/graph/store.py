"""
Graph store: owns Settings and every board in it.

Every mutation runs under the owning board's lock, updates the in-memory
Settings and persists before returning. Unknown board ids are a silent
no-op on write paths.

Locks:
    _settings_lock  - guards the board list and lastActiveBoardId
    board_lock(id)  - per-board scope; anchor promotion holds it across the
                      document write and the reference migration
"""

import contextlib
import logging
import threading
import uuid
from typing import Any, Dict, Iterator, List, Optional

from models.board import Board, BoardData, BoardFilters, Edge, Position, Settings, TextNode

log = logging.getLogger(__name__)


def _coerce_data_field(name: str, value: Any) -> Any:
    """Accept either model objects or wire-shaped dicts for a data field."""
    if name == "layout":
        return {
            k: v if isinstance(v, Position) else Position.from_dict(v)
            for k, v in value.items()
        }
    if name == "edges":
        return [e if isinstance(e, Edge) else Edge.from_dict(e) for e in value]
    if name == "node_status":
        return dict(value)
    if name == "text_nodes":
        return [n if isinstance(n, TextNode) else TextNode.from_dict(n) for n in value]
    raise KeyError(name)


_DATA_FIELDS = {
    "layout": "layout",
    "edges": "edges",
    "nodeStatus": "node_status",
    "node_status": "node_status",
    "textNodes": "text_nodes",
    "text_nodes": "text_nodes",
}

_FILTER_FIELDS = {
    "tags": "tags",
    "excludeTags": "exclude_tags",
    "exclude_tags": "exclude_tags",
    "folders": "folders",
    "status": "status",
}


class GraphStore:
    """
    In-memory Settings with write-through persistence.

    Args:
        settings_store: object with load() -> Settings and save(Settings)
    """

    def __init__(self, settings_store) -> None:
        self._persist = settings_store
        self._settings_lock = threading.RLock()
        self._board_locks: Dict[str, threading.RLock] = {}
        self._settings: Settings = settings_store.load()
        log.info(
            "Loaded %d board(s), last active %s",
            len(self._settings.boards),
            self._settings.last_active_board_id,
        )

    # ------------------------------------------------------------------
    # Locking / persistence
    # ------------------------------------------------------------------

    @contextlib.contextmanager
    def board_lock(self, board_id: str) -> Iterator[None]:
        with self._settings_lock:
            lock = self._board_locks.setdefault(board_id, threading.RLock())
        with lock:
            yield

    def save(self) -> None:
        with self._settings_lock:
            self._persist.save(self._settings)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Settings:
        return self._settings

    def list_boards(self) -> List[Board]:
        with self._settings_lock:
            return list(self._settings.boards)

    def find_board(self, board_id: str) -> Optional[Board]:
        with self._settings_lock:
            return self._settings.find_board(board_id)

    def get_board(self, board_id: Optional[str] = None) -> Board:
        """Return the named board, falling back to the first board."""
        with self._settings_lock:
            board = self._settings.find_board(board_id) if board_id else None
            return board or self._settings.boards[0]

    def active_board(self) -> Board:
        return self.get_board(self._settings.last_active_board_id)

    # ------------------------------------------------------------------
    # Board data / config
    # ------------------------------------------------------------------

    def save_board_data(self, board_id: str, partial: Dict[str, Any]) -> bool:
        """
        Merge the fields present in ``partial`` into the board's data.

        Keys may be wire names (``nodeStatus``) or attribute names
        (``node_status``). Absent or None fields are left untouched.
        Returns False when the board does not exist.
        """
        with self.board_lock(board_id):
            board = self.find_board(board_id)
            if board is None:
                log.debug("save_board_data: unknown board %s", board_id)
                return False
            for key, value in partial.items():
                attr = _DATA_FIELDS.get(key)
                if attr is None or value is None:
                    continue
                setattr(board.data, attr, _coerce_data_field(attr, value))
            self.save()
            return True

    def update_board_config(self, board_id: str, partial: Dict[str, Any]) -> bool:
        """
        Merge name, id and filter fields into a board.

        ``filters`` may itself be partial. Returns False for unknown boards
        or when a new id would clash with another board.
        """
        with self.board_lock(board_id):
            board = self.find_board(board_id)
            if board is None:
                log.debug("update_board_config: unknown board %s", board_id)
                return False

            new_id = partial.get("id")
            if new_id and new_id != board.id:
                if self.find_board(new_id) is not None:
                    log.warning("Refusing to rename board %s to existing id %s", board.id, new_id)
                    return False
                with self._settings_lock:
                    if self._settings.last_active_board_id == board.id:
                        self._settings.last_active_board_id = new_id
                    # The held lock follows the board to its new id
                    self._board_locks[new_id] = self._board_locks.pop(board.id)
                    board.id = new_id

            if partial.get("name") is not None:
                board.name = partial["name"]

            filters = partial.get("filters")
            if isinstance(filters, BoardFilters):
                board.filters = filters
            elif filters:
                for key, value in filters.items():
                    attr = _FILTER_FIELDS.get(key)
                    if attr is not None and value is not None:
                        setattr(board.filters, attr, list(value))

            self.save()
            return True

    # ------------------------------------------------------------------
    # Board collection
    # ------------------------------------------------------------------

    def create_board(self, name: str, filters: Optional[BoardFilters] = None) -> Board:
        with self._settings_lock:
            board_id = uuid.uuid4().hex[:8]
            while self._settings.find_board(board_id) is not None:
                board_id = uuid.uuid4().hex[:8]
            board = Board(id=board_id, name=name, filters=filters or BoardFilters(), data=BoardData())
            self._settings.boards.append(board)
            self.save()
        log.info("Created board %s (%s)", board.id, name)
        return board

    def delete_board(self, board_id: str) -> bool:
        """
        Remove a board. The last remaining board cannot be removed.

        Raises:
            ValueError: if ``board_id`` is the only board
        """
        with self.board_lock(board_id), self._settings_lock:
            board = self._settings.find_board(board_id)
            if board is None:
                return False
            if len(self._settings.boards) == 1:
                raise ValueError("Cannot delete the last board")
            self._settings.boards.remove(board)
            if self._settings.last_active_board_id == board_id:
                self._settings.last_active_board_id = self._settings.boards[0].id
            self.save()
        log.info("Deleted board %s", board_id)
        return True

    def set_active_board(self, board_id: str) -> bool:
        with self._settings_lock:
            if self._settings.find_board(board_id) is None:
                return False
            self._settings.last_active_board_id = board_id
            self.save()
            return True
