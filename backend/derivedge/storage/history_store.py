"""Bounded in-memory tick history per instrument.

Each instrument keeps a FIFO window of at most ``capacity`` ticks; the
oldest tick is evicted first. Reads return copies, so callers never see
the live deque.

The ingest path holds ``lock(instrument)`` across append, recompute and
publish; readers take the same (re-entrant) lock inside ``snapshot``, so
a reader never observes a window that is halfway through an update.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from itertools import islice

from edgecore.models import Tick

logger = logging.getLogger(__name__)

# Server-side default; the browser dashboard kept 2,000.
DEFAULT_CAPACITY = 5_000


class HistoryStore:
    """Per-instrument tick windows.

    Parameters
    ----------
    capacity : int
        Maximum ticks kept per instrument. Must be positive.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._windows: dict[str, deque[Tick]] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def lock(self, instrument: str) -> threading.RLock:
        """The instrument's re-entrant lock (created on first use)."""
        lock = self._locks.get(instrument)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.setdefault(instrument, threading.RLock())
        return lock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def append(self, instrument: str, tick: Tick) -> None:
        """Push a tick to the end of the window, evicting the oldest if full."""
        with self.lock(instrument):
            window = self._windows.get(instrument)
            if window is None:
                window = deque(maxlen=self.capacity)
                self._windows[instrument] = window
            window.append(tick)

    def snapshot(self, instrument: str, n: int | None = None) -> list[Tick]:
        """Copy of the last ``n`` ticks (all of them when ``n`` is None).

        Unknown instruments and ``n <= 0`` read as an empty list.
        """
        if instrument not in self._windows:
            return []
        with self.lock(instrument):
            window = self._windows.get(instrument)
            if not window:
                return []
            if n is None or n >= len(window):
                return list(window)
            if n <= 0:
                return []
            # deque has no slicing
            return list(islice(window, len(window) - n, None))

    def prices(self, instrument: str) -> list[float]:
        """Prices of the whole window, oldest first."""
        return [t.price for t in self.snapshot(instrument)]

    def reset(self, instrument: str) -> None:
        """Clear one instrument's window. Others are untouched."""
        if instrument not in self._windows:
            return
        with self.lock(instrument):
            window = self._windows.get(instrument)
            if window is not None:
                window.clear()
        logger.info("History reset for %s", instrument)

    def size(self, instrument: str) -> int:
        if instrument not in self._windows:
            return 0
        with self.lock(instrument):
            return len(self._windows.get(instrument, ()))

    def instruments(self) -> list[str]:
        """Instruments that have received at least one tick."""
        return list(self._windows)
