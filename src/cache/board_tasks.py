"""
Latest extracted task list per board.

Lists are extracted lazily on first request and replaced wholesale on
refresh. A refresh that finishes after a newer one simply overwrites it
(last write wins); nothing is diffed incrementally.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from models.task import Task

log = logging.getLogger(__name__)


class BoardTaskCache:
    def __init__(self, graph) -> None:
        self._graph = graph
        self._lock = threading.Lock()
        self._tasks: Dict[str, List[Task]] = {}
        self._last_refresh: Optional[datetime] = None

    def tasks(self, board_id: str) -> List[Task]:
        with self._lock:
            cached = self._tasks.get(board_id)
        if cached is not None:
            return cached
        return self.refresh_board(board_id)

    def refresh_board(self, board_id: str) -> List[Task]:
        tasks = self._graph.get_tasks(board_id)
        with self._lock:
            self._tasks[board_id] = tasks
            self._last_refresh = datetime.now()
        return tasks

    def refresh_all(self) -> None:
        """Re-extract every board that has been requested so far."""
        with self._lock:
            board_ids = list(self._tasks)
        for board_id in board_ids:
            self.refresh_board(board_id)
        log.debug("Refreshed %d board(s)", len(board_ids))

    def forget(self, board_id: str) -> None:
        with self._lock:
            self._tasks.pop(board_id, None)

    def status(self) -> dict:
        with self._lock:
            return {
                "boards_cached": sorted(self._tasks),
                "tasks_cached": sum(len(t) for t in self._tasks.values()),
                "last_refresh": self._last_refresh.isoformat() if self._last_refresh else None,
            }
