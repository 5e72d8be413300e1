"""
User-facing notice log.

Operations that fail on document I/O push a short message here instead of
raising; the REST API exposes the most recent messages.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    message: str
    level: str
    created: datetime


class Notices:
    """Thread-safe bounded buffer of recent notices."""

    def __init__(self, maxlen: int = 50) -> None:
        self._lock = threading.Lock()
        self._items: Deque[Notice] = deque(maxlen=maxlen)

    def push(self, message: str, level: str = "info") -> None:
        log.log(logging.WARNING if level == "error" else logging.INFO, "Notice: %s", message)
        with self._lock:
            self._items.append(Notice(message=message, level=level, created=datetime.now()))

    def error(self, message: str) -> None:
        self.push(message, level="error")

    def recent(self, limit: int = 20) -> List[Notice]:
        """Return up to ``limit`` notices, newest last."""
        with self._lock:
            items = list(self._items)
        return items[-limit:] if limit > 0 else []
