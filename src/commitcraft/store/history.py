"""Append-only history of generated commit messages."""

import json
import logging
import os
import tempfile
import threading
from collections import OrderedDict

from pydantic import ValidationError

from commitcraft.models.record_models import CommitMessageRecord, FeedbackRating
from commitcraft.store.exceptions import PersistenceError, RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)


class HistoryStore:
    """Thread-safe record store, optionally backed by a JSON file.

    Records are kept in insertion order. The generated text of a record
    (raw_message and enhanced_message) never changes; feedback and edits replace the record with
    an updated copy. When a path is given, every mutation rewrites the file
    atomically. A failed write raises PersistenceError but the in-memory
    change is kept.

    With max_records set, appending past the limit drops the oldest
    records, and a longer history file is cut down the same way on load.
    """

    def __init__(self, path: str | None = None, max_records: int | None = None) -> None:
        if max_records is not None and max_records <= 0:
            raise ValueError("max_records must be positive")
        self.path = path
        self.max_records = max_records
        self._records: OrderedDict[str, CommitMessageRecord] = OrderedDict()
        self._lock = threading.RLock()
        if path:
            self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Failed to read history file {self.path}: {exc}") from exc
        if not isinstance(payload, list):
            raise PersistenceError(f"History file {self.path} must contain a JSON list")
        try:
            for item in payload:
                record = CommitMessageRecord.model_validate(item)
                self._records[record.id] = record
        except ValidationError as exc:
            raise PersistenceError(f"Invalid record in {self.path}: {exc}") from exc
        dropped = self._trim_locked()
        if dropped:
            logger.info("Dropped %d history records over the limit of %d", dropped, self.max_records)
        logger.info("Loaded %d history records from %s", len(self._records), self.path)

    def _trim_locked(self) -> int:
        if self.max_records is None:
            return 0
        dropped = 0
        while len(self._records) > self.max_records:
            self._records.popitem(last=False)
            dropped += 1
        return dropped

    def _persist_locked(self) -> None:
        if not self.path:
            return
        payload = [record.model_dump(mode="json") for record in self._records.values()]
        dirname = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(dirname, exist_ok=True)
            tmp_fd, tmp_path = tempfile.mkstemp(dir=dirname, prefix=".tmp_", suffix=".json")
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Failed to write history file {self.path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, record: CommitMessageRecord) -> CommitMessageRecord:
        """Add a new record.

        Raises:
            StoreError: If a record with the same id already exists.
            PersistenceError: If the history file cannot be written.
        """
        with self._lock:
            if record.id in self._records:
                raise StoreError(f"Record '{record.id}' already exists")
            self._records[record.id] = record
            self._trim_locked()
            self._persist_locked()
        logger.debug("Appended record %s (model=%s)", record.id, record.model_id)
        return record

    def update_feedback(
        self,
        record_id: str,
        rating: FeedbackRating | str,
        comment: str | None = None,
    ) -> CommitMessageRecord:
        """Attach a rating (and optional comment) to a record."""
        rating = FeedbackRating(rating)
        with self._lock:
            record = self.get(record_id)
            updated = record.model_copy(update={"feedback": rating, "feedback_comment": comment})
            self._records[record_id] = updated
            self._persist_locked()
        return updated

    def record_edit(self, record_id: str, new_message: str) -> CommitMessageRecord:
        """Store a user's edit of the enhanced message.

        The edit goes to edited_message; raw_message and enhanced_message
        keep the generated text. A later edit replaces an earlier one.

        Raises:
            StoreError: If new_message is empty.
            RecordNotFoundError: If the id is unknown.
        """
        if not new_message or not new_message.strip():
            raise StoreError("Edited commit message cannot be empty")
        with self._lock:
            record = self.get(record_id)
            updated = record.model_copy(update={
                "edited_message": new_message,
                "user_edited": True,
                "feedback": FeedbackRating.EDITED,
            })
            self._records[record_id] = updated
            self._persist_locked()
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, record_id: str) -> CommitMessageRecord:
        with self._lock:
            record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    def list_records(self, limit: int | None = None) -> list[CommitMessageRecord]:
        """Return records oldest first; with limit, only the newest `limit`."""
        with self._lock:
            records = list(self._records.values())
        if limit is not None:
            return records[-limit:] if limit > 0 else []
        return records

    def latest(self) -> CommitMessageRecord | None:
        with self._lock:
            if not self._records:
                return None
            return next(reversed(self._records.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        with self._lock:
            return record_id in self._records
