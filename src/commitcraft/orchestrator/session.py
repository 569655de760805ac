"""Generation session: sequencing, supersession and progress events."""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from commitcraft.config import Preferences
from commitcraft.models import (
    CommitMessageRecord,
    DiffAnalysis,
    FeedbackAck,
    FeedbackRating,
    ProgressEvent,
    ProgressStage,
)
from commitcraft.orchestrator.events import EventBus, Subscription
from commitcraft.orchestrator.exceptions import OrchestratorError, PipelineAbortedError
from commitcraft.orchestrator.graph import build_graph, failure_payload
from commitcraft.orchestrator.state import GenerationState, make_initial_state
from commitcraft.providers.stream import CancellationToken
from commitcraft.store.exceptions import PersistenceError, RecordNotFoundError

if TYPE_CHECKING:
    from commitcraft.orchestrator.context import ServiceContext

logger = logging.getLogger(__name__)


class GenerationSession:
    """Owns one generation pipeline and its progress stream.

    Every trigger takes the next sequence number and cancels the previous
    one (last request wins). Event delivery and the final persist both check
    under the session lock that their sequence is still current, so nothing
    from a superseded run reaches subscribers or the history after a newer
    run has started.

    Two locks are used. _lock guards session state and is never held while
    waiting on a subscriber, so queries, cancel() and a newer trigger() stay
    responsive when a consumer is slow. _publish_lock serializes delivery so
    events reach subscribers in sequence order; a publisher blocked on a full
    queue gives up as soon as its sequence is superseded.
    """

    def __init__(
        self,
        context: "ServiceContext",
        preferences: Preferences | None = None,
        session_id: str | None = None,
    ) -> None:
        self.context = context
        self.preferences = preferences or context.settings.preferences
        self.session_id = session_id or f"sess-{uuid.uuid4().hex[:8]}"
        self.events = EventBus(maxsize=context.settings.progress_queue_size)
        self._lock = threading.Lock()
        self._publish_lock = threading.Lock()
        self._sequence = 0
        self._token: CancellationToken | None = None
        self._analysis: DiffAnalysis | None = None
        self._latest_record: CommitMessageRecord | None = None
        self._partial_text = ""
        self._executor: ThreadPoolExecutor | None = None
        self._closed = False
        self._graph = build_graph(
            analyzer=context.analyzer,
            cache=context.cache,
            prompt_builder=context.prompt_builder,
            router=context.router,
            enhancer=context.enhancer,
            hooks=self,
            cache_ttl=context.settings.cache_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Triggering
    # ------------------------------------------------------------------

    def trigger(
        self,
        diff_text: str,
        model_id: str | None = None,
        narrative: str | None = None,
        persona: str | None = None,
    ) -> GenerationState:
        """Run the pipeline for a diff in the calling thread.

        Supersedes any generation already running in this session.

        Args:
            diff_text: Raw unified diff.
            model_id: Registered model id; defaults to the preferred model.
            narrative: Optional free-text description of the change.
            persona: Prompt persona; defaults to the configured one.

        Returns:
            The final GenerationState. On failure it holds a "failure"
            payload, which has also been emitted as one error event.

        Raises:
            OrchestratorError: If the session has been closed.
        """
        with self._lock:
            if self._closed:
                raise OrchestratorError(f"Session {self.session_id} is closed")
            self._sequence += 1
            sequence = self._sequence
            if self._token is not None:
                self._token.cancel()
            token = CancellationToken()
            self._token = token
            self._partial_text = ""

        logger.info("Session %s: trigger sequence %d", self.session_id, sequence)
        state = make_initial_state(
            session_id=self.session_id,
            sequence=sequence,
            diff_text=diff_text,
            model_id=model_id or self.preferences.default_model_id,
            preferences=self.preferences,
            token=token,
            narrative=narrative,
            persona=persona if persona is not None else self.context.settings.persona,
        )
        final = self._graph.invoke(state)

        failure = final.get("failure")
        if failure is None and final.get("record") is None:
            failure = failure_payload(
                final.get("stage", "generation"),
                PipelineAbortedError("Generation was cancelled before completion"),
            )
        if failure is not None:
            # Dropped by emit() when a newer sequence has started
            self.emit(sequence, ProgressStage.ERROR, failure)
        return final

    def submit(
        self,
        diff_text: str,
        model_id: str | None = None,
        narrative: str | None = None,
        persona: str | None = None,
    ) -> "Future[GenerationState]":
        """Run trigger() on a background worker."""
        with self._lock:
            if self._closed:
                raise OrchestratorError(f"Session {self.session_id} is closed")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix=f"{self.session_id}")
            executor = self._executor
        return executor.submit(self.trigger, diff_text, model_id, narrative, persona)

    def cancel(self) -> None:
        """Cancel the running generation, if any."""
        with self._lock:
            if self._token is not None:
                self._token.cancel()

    @property
    def sequence(self) -> int:
        with self._lock:
            return self._sequence

    def is_current(self, sequence: int) -> bool:
        with self._lock:
            return sequence == self._sequence and not self._closed

    # ------------------------------------------------------------------
    # Pipeline hooks
    # ------------------------------------------------------------------

    def emit(self, sequence: int, stage: ProgressStage, payload: dict[str, Any]) -> bool:
        """Publish an event if sequence is current; False if superseded.

        A newer trigger that starts while this event waits on a full
        subscriber queue makes delivery give up and return False.
        """
        if not self.is_current(sequence):
            return False
        with self._publish_lock:
            with self._lock:
                if sequence != self._sequence:
                    return False
                if stage == ProgressStage.GENERATION_PROGRESS:
                    self._partial_text = payload.get("text", self._partial_text + payload.get("fragment", ""))
            event = ProgressEvent(stage=stage, payload=payload, sequence=sequence, session_id=self.session_id)
            self.events.publish(event, is_current=lambda: self.is_current(sequence))
            return self.is_current(sequence)

    def record_analysis(self, sequence: int, analysis: DiffAnalysis) -> None:
        with self._lock:
            if sequence == self._sequence:
                self._analysis = analysis

    def commit(self, sequence: int, record: CommitMessageRecord) -> bool:
        """Append the record and publish "persisted" if sequence is current.

        Raises:
            PersistenceError: If the history file cannot be written. The
                record is still kept in memory and returned by latest_record().
        """
        with self._publish_lock:
            with self._lock:
                if sequence != self._sequence:
                    logger.info("Dropping record for superseded sequence %d", sequence)
                    return False
                self._latest_record = record
                self.context.history.append(record)
            self.events.publish(
                ProgressEvent(
                    stage=ProgressStage.PERSISTED,
                    payload={"record_id": record.id, "record": record.model_dump(mode="json")},
                    sequence=sequence,
                    session_id=self.session_id,
                ),
                is_current=lambda: self.is_current(sequence),
            )
            return True

    # ------------------------------------------------------------------
    # Queries and feedback
    # ------------------------------------------------------------------

    def subscribe(self) -> Subscription:
        return self.events.subscribe()

    def current_analysis(self) -> DiffAnalysis | None:
        with self._lock:
            return self._analysis

    def latest_record(self) -> CommitMessageRecord | None:
        with self._lock:
            return self._latest_record

    def partial_text(self) -> str:
        """Text streamed so far by the current sequence."""
        with self._lock:
            return self._partial_text

    def _refresh_latest(self, record: CommitMessageRecord) -> None:
        with self._lock:
            if self._latest_record is not None and self._latest_record.id == record.id:
                self._latest_record = record

    def submit_feedback(
        self,
        record_id: str,
        rating: FeedbackRating | str,
        comment: str | None = None,
    ) -> FeedbackAck:
        """Attach a rating to a record and acknowledge it."""
        try:
            rating = FeedbackRating(rating)
        except ValueError:
            return FeedbackAck(record_id=record_id, accepted=False, message=f"Unknown rating: {rating!r}")
        try:
            updated = self.context.history.update_feedback(record_id, rating, comment)
        except RecordNotFoundError as exc:
            return FeedbackAck(record_id=record_id, accepted=False, rating=rating, message=str(exc))
        except PersistenceError as exc:
            logger.warning("Feedback for %s kept in memory only: %s", record_id, exc)
            self._refresh_latest(self.context.history.get(record_id))
            return FeedbackAck(
                record_id=record_id,
                accepted=True,
                rating=rating,
                message=f"Feedback recorded but not saved to disk: {exc}",
            )
        self._refresh_latest(updated)
        return FeedbackAck(record_id=record_id, accepted=True, rating=rating, message="Feedback recorded")

    def submit_edit(self, record_id: str, new_message: str) -> CommitMessageRecord:
        """Store a user's edit of a generated message.

        Raises:
            StoreError: If the id is unknown, the message is empty, or the
                history file cannot be written.
        """
        updated = self.context.history.record_edit(record_id, new_message)
        self._refresh_latest(updated)
        return updated

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._token is not None:
                self._token.cancel()
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=True)
        self.events.close()
