"""Service context: the collaborators shared by generation sessions."""

import logging
import threading
from dataclasses import dataclass, field

from commitcraft.analysis.diff_analyzer import DiffAnalyzer
from commitcraft.config import PipelineSettings, Preferences
from commitcraft.enhancement.enhancer import MessageEnhancer
from commitcraft.orchestrator.session import GenerationSession
from commitcraft.prompting.prompt_builder import PromptBuilder
from commitcraft.providers.backends import StreamingBackend
from commitcraft.providers.cost import CostTracker
from commitcraft.providers.credentials import ProviderCredentials
from commitcraft.providers.rate_limiter import SlidingWindowRateLimiter
from commitcraft.providers.registry import ModelRegistry
from commitcraft.providers.router import ModelRouter
from commitcraft.store.cache import AnalysisCache
from commitcraft.store.history import HistoryStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Explicit service objects built once at startup.

    Sessions share the cache and history store, both thread-safe. Use
    ServiceContext.create() to build one and close() (or a with block) to
    release it.
    """

    settings: PipelineSettings
    registry: ModelRegistry
    router: ModelRouter
    analyzer: DiffAnalyzer
    cache: AnalysisCache
    history: HistoryStore
    prompt_builder: PromptBuilder
    enhancer: MessageEnhancer
    cost_tracker: CostTracker
    _sessions: list[GenerationSession] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def create(
        cls,
        settings: PipelineSettings | None = None,
        credentials: ProviderCredentials | None = None,
        backends: dict[str, StreamingBackend] | None = None,
    ) -> "ServiceContext":
        """Build every collaborator from settings.

        Args:
            settings: Pipeline settings; defaults to PipelineSettings.from_env().
            credentials: Provider secrets; defaults to ProviderCredentials.from_env().
            backends: Streaming backends keyed by provider tag, overriding the
                ones built from credentials.

        Raises:
            ConfigurationError: If the custom models file is invalid.
            PersistenceError: If the history file exists but cannot be read.
        """
        settings = settings or PipelineSettings.from_env()
        credentials = credentials or ProviderCredentials.from_env()
        registry = ModelRegistry.with_defaults(settings.models_file)
        cost_tracker = CostTracker()
        rate_limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            max_wait_seconds=settings.rate_limit_max_wait_seconds,
        )
        router = ModelRouter(
            registry=registry,
            credentials=credentials,
            rate_limiter=rate_limiter,
            cost_tracker=cost_tracker,
            backends=backends,
        )
        context = cls(
            settings=settings,
            registry=registry,
            router=router,
            analyzer=DiffAnalyzer(max_workers=settings.analysis_workers),
            cache=AnalysisCache(ttl_seconds=settings.cache_ttl_seconds),
            history=HistoryStore(settings.history_path, max_records=settings.history_max_records),
            prompt_builder=PromptBuilder(max_diff_chars=settings.max_diff_chars),
            enhancer=MessageEnhancer(),
            cost_tracker=cost_tracker,
        )
        logger.debug(
            "Service context ready: %d models, history=%s",
            len(registry.list_models()), settings.history_path or "memory",
        )
        return context

    def new_session(self, preferences: Preferences | None = None) -> GenerationSession:
        session = GenerationSession(self, preferences=preferences)
        with self._lock:
            self._sessions.append(session)
        return session

    def close(self) -> None:
        with self._lock:
            sessions = list(self._sessions)
            self._sessions.clear()
        for session in sessions:
            session.close()
        self.cache.invalidate()
        logger.debug("Service context closed (total cost $%.6f)", self.cost_tracker.total_usd)

    def __enter__(self) -> "ServiceContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
