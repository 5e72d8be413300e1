"""
Leading-edge debouncer.

The first trigger in a burst runs the callback immediately; later triggers
that arrive within ``window`` seconds of the last run are absorbed.
"""

import logging
import threading
import time
from typing import Callable

log = logging.getLogger(__name__)


class Debouncer:
    def __init__(
        self,
        callback: Callable[[], None],
        window: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._last_run: float = float("-inf")

    def trigger(self) -> bool:
        """Run the callback unless one ran within the window. Returns True if it ran."""
        with self._lock:
            now = self._clock()
            if now - self._last_run < self._window:
                log.debug("Debounced trigger (%.3fs since last run)", now - self._last_run)
                return False
            self._last_run = now
        try:
            self._callback()
        except Exception:
            log.exception("Debounced callback failed")
        return True
