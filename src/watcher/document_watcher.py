"""
Document watcher, polling-based.

Vaults often live on mounts that do not forward filesystem events, so the
watcher compares document mtimes on a fixed interval instead.

Each poll cycle:
1. Snapshots {path: mtime} for every document
2. Invalidates the list index entry of each new, modified or deleted document
3. Fires ``on_change`` once if anything changed (the caller debounces)
"""

import logging
import os
import threading
from typing import Callable, Dict, List, Optional

log = logging.getLogger(__name__)

# Default polling interval in seconds (configurable via POLL_INTERVAL env var)
_DEFAULT_POLL_INTERVAL = 2.0


class DocumentWatcher:
    """
    Usage:
        watcher = DocumentWatcher(documents, index, on_change)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        documents,
        index,
        on_change: Callable[[], None],
        poll_interval: Optional[float] = None,
    ) -> None:
        self._documents = documents
        self._index = index
        self._on_change = on_change
        self._poll_interval = poll_interval or float(
            os.environ.get("POLL_INTERVAL", _DEFAULT_POLL_INTERVAL)
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._known: Dict[str, float] = {}

    def start(self) -> None:
        """Start the polling thread (daemon)."""
        log.info("Starting document watcher (polling every %.1fs)", self._poll_interval)
        self._known = self._snapshot()
        self._thread = threading.Thread(
            target=self._poll_loop, daemon=True, name="document-watcher"
        )
        self._thread.start()

    def stop(self) -> None:
        log.info("Stopping document watcher")
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._poll_interval + 2)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            self._stop_event.wait(self._poll_interval)
            if self._stop_event.is_set():
                break
            try:
                self.check_for_changes()
            except Exception:
                log.exception("Error during poll cycle")

    def check_for_changes(self) -> List[str]:
        """Run one poll cycle; return the changed document paths."""
        current = self._snapshot()
        changed = [
            path for path, mtime in current.items()
            if self._known.get(path) is None or mtime > self._known[path]
        ]
        changed.extend(path for path in self._known if path not in current)
        self._known = current

        if changed:
            for path in changed:
                log.debug("Document changed: %s", path)
                self._index.invalidate(path)
            self._on_change()
        return changed

    def _snapshot(self) -> Dict[str, float]:
        snapshot: Dict[str, float] = {}
        try:
            paths = self._documents.list_documents()
        except OSError:
            log.exception("Error listing documents")
            return dict(self._known)
        for path in paths:
            mtime = self._documents.mtime(path)
            if mtime is not None:
                snapshot[path] = mtime
        return snapshot
