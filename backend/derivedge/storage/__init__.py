"""Data storage layer."""

from derivedge.storage.history_store import DEFAULT_CAPACITY, HistoryStore

__all__ = [
    "DEFAULT_CAPACITY",
    "HistoryStore",
]
