"""In-memory TTL cache with single-flight computation per key."""

import logging
import threading
import time
from typing import Any, Callable, NamedTuple

from cachetools import TLRUCache

from commitcraft.store.exceptions import StoreError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_MAX_ENTRIES = 256


class _Entry(NamedTuple):
    value: Any
    lifetime: float


def _expires_at(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.lifetime


class _InFlight:
    """One running computation that late callers wait on."""

    def __init__(self) -> None:
        self.event = threading.Event()
        self.value: Any = None
        self.error: Exception | None = None
        self.done = False


class AnalysisCache:
    """Caches analysis results by diff fingerprint.

    Concurrent callers for the same key share one computation: the first
    caller runs compute_fn, the others block until it finishes and receive
    the same result (or the same exception). Failures are never cached.

    Entries live in a cachetools TLRUCache, so each one expires after its
    own lifetime on the injected clock and the least recently used entry is
    evicted at max_entries. cachetools is not thread-safe; every access goes
    through _lock.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_expires_at, timer=clock)
        self._inflight: dict[str, _InFlight] = {}
        self._lock = threading.Lock()
        self.compute_count = 0
        self.hits = 0

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            return self._lookup_locked(key)

    def _lookup_locked(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        return None if entry is None else entry.value

    def get_or_compute(self, key: str, compute_fn: Callable[[], Any], ttl: float | None = None) -> Any:
        """Return the cached value for key, computing it at most once.

        Args:
            key: Cache key, normally a diff fingerprint.
            compute_fn: Zero-argument callable producing the value.
            ttl: Seconds the value stays fresh; defaults to ttl_seconds.

        Raises:
            Whatever compute_fn raised, re-raised in every waiting caller.
        """
        with self._lock:
            cached = self._lookup_locked(key)
            if cached is not None:
                self.hits += 1
                return cached
            flight = self._inflight.get(key)
            leader = flight is None
            if leader:
                flight = _InFlight()
                self._inflight[key] = flight
                self.compute_count += 1

        if not leader:
            logger.debug("Joining in-flight computation for %s", key[:12])
            flight.event.wait()
            if flight.error is not None:
                raise flight.error
            if not flight.done:
                raise StoreError(f"Computation for '{key[:12]}' was aborted")
            return flight.value

        try:
            value = compute_fn()
        except Exception as exc:
            flight.error = exc
            raise
        else:
            flight.value = value
            flight.done = True
            with self._lock:
                lifetime = self.ttl_seconds if ttl is None else ttl
                self._entries[key] = _Entry(value, lifetime)
            return value
        finally:
            with self._lock:
                self._inflight.pop(key, None)
            flight.event.set()

    def invalidate(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
