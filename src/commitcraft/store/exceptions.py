"""Exceptions for the analysis cache and history store."""


class StoreError(Exception):
    """Base exception for cache and history errors."""


class PersistenceError(StoreError):
    """Raised when the history file cannot be read or written."""


class RecordNotFoundError(StoreError):
    """Raised when a history record id is unknown."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"No commit message record with id '{record_id}'")
        self.record_id = record_id
