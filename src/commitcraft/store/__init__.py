"""Analysis cache and commit message history."""

from commitcraft.store.cache import AnalysisCache
from commitcraft.store.exceptions import PersistenceError, RecordNotFoundError, StoreError
from commitcraft.store.history import HistoryStore

__all__ = [
    "AnalysisCache",
    "HistoryStore",
    "PersistenceError",
    "RecordNotFoundError",
    "StoreError",
]
