"""Cancellable, finite stream of generated text fragments."""

import logging
import threading
import time
from collections.abc import Iterator
from typing import Callable

from commitcraft.models.llm_models import GenerationUsage
from commitcraft.providers.exceptions import ProviderError, ProviderLayerError

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation flag shared between a consumer and a stream."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


class GenerationStream:
    """Iterator over text fragments from one generation request.

    Fragments are yielded in the order the provider produced them and are
    never dropped or reordered, so "".join(fragments) is the full message.
    The stream cannot be restarted: once exhausted, cancelled or failed it
    stays finished, and a new request is needed to try again.
    """

    def __init__(
        self,
        fragments: Iterator[str],
        model_id: str,
        token: CancellationToken | None = None,
        on_complete: Callable[[str, float], None] | None = None,
    ) -> None:
        self.model_id = model_id
        self.token = token or CancellationToken()
        self._fragments = fragments
        self._on_complete = on_complete
        self._parts: list[str] = []
        self._pending: list[str] = []
        self._started = time.monotonic()
        self._finished = False
        self.completed = False
        self.cancelled = False
        self.usage: GenerationUsage | None = None  # Set by the router on completion

    def prime(self) -> None:
        """Pull the first fragment so pre-output failures surface here.

        Raises:
            ProviderError: If the provider fails, or returns nothing, before
                producing any output.
        """
        try:
            first = self._pull()
        except StopIteration:
            self._finish()
            raise ProviderError(f"Model '{self.model_id}' returned an empty response") from None
        except ProviderLayerError:
            self._finish()
            raise
        except Exception as exc:
            self._finish()
            raise ProviderError(f"Model '{self.model_id}' failed before producing output: {exc}") from exc
        self._pending.append(first)

    def _pull(self) -> str:
        while True:
            fragment = next(self._fragments)
            if fragment:
                return fragment

    def __iter__(self) -> "GenerationStream":
        return self

    def __next__(self) -> str:
        if self._finished:
            raise StopIteration
        if self.token.is_cancelled:
            self.cancelled = True
            logger.debug("Stream for %s cancelled after %d fragments", self.model_id, len(self._parts))
            self._finish()
            raise StopIteration
        if self._pending:
            fragment = self._pending.pop(0)
        else:
            try:
                fragment = self._pull()
            except StopIteration:
                self.completed = True
                self._finish()
                if self._on_complete is not None:
                    self._on_complete(self.text, self.elapsed_ms)
                raise
            except Exception as exc:
                self._finish()
                raise ProviderError(
                    f"Model '{self.model_id}' stream failed mid-generation: {exc}",
                    partial_output=bool(self._parts),
                ) from exc
        self._parts.append(fragment)
        return fragment

    @property
    def text(self) -> str:
        return "".join(self._parts)

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self._started) * 1000

    def _finish(self) -> None:
        self._finished = True
        close = getattr(self._fragments, "close", None)
        if close is not None:
            close()

    def close(self) -> None:
        """Cancel and release the upstream response."""
        self.token.cancel()
        if not self._finished:
            self.cancelled = True
            self._finish()
