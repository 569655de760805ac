"""Model router: one streaming contract over every configured provider."""

import logging
import threading

from commitcraft.models.llm_models import GenerationUsage, ModelConfig
from commitcraft.providers.backends import (
    AnthropicBackend,
    OpenAICompatibleBackend,
    StreamingBackend,
)
from commitcraft.providers.cost import CostTracker, compute_cost, estimate_tokens
from commitcraft.providers.credentials import ProviderCredentials
from commitcraft.providers.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderLayerError,
    UnsupportedProviderError,
)
from commitcraft.providers.rate_limiter import SlidingWindowRateLimiter
from commitcraft.providers.registry import DEFAULT_OLLAMA_BASE, ModelRegistry
from commitcraft.providers.stream import CancellationToken, GenerationStream

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = frozenset({"anthropic", "openai", "custom", "ollama"})

# Local OpenAI-compatible servers ignore the key but the client requires one
_PLACEHOLDER_API_KEY = "not-needed"


class ModelRouter:
    """Routes generation requests to provider backends.

    Before dispatch every request passes the per-model rate-limit gate.
    After the stream completes its cost is estimated and recorded.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        credentials: ProviderCredentials,
        rate_limiter: SlidingWindowRateLimiter,
        cost_tracker: CostTracker | None = None,
        backends: dict[str, StreamingBackend] | None = None,
    ) -> None:
        self.registry = registry
        self.credentials = credentials
        self.rate_limiter = rate_limiter
        self.cost_tracker = cost_tracker or CostTracker()
        # Explicit backends win over the ones built from credentials
        self._overrides: dict[str, StreamingBackend] = dict(backends or {})
        self._backends: dict[tuple[str, str | None], StreamingBackend] = {}
        self._lock = threading.Lock()

    def list_models(self) -> list[ModelConfig]:
        return self.registry.list_models()

    def get_model(self, model_id: str) -> ModelConfig:
        return self.registry.get(model_id)

    def _normalize_provider(self, value: str) -> str:
        provider = (value or "").strip().lower()
        if provider in self._overrides:
            return provider
        if provider not in SUPPORTED_PROVIDERS:
            raise UnsupportedProviderError(f"Unsupported provider: {value!r}")
        return provider

    def _build_backend(self, provider: str, config: ModelConfig) -> StreamingBackend:
        reveal = ProviderCredentials.reveal
        if provider == "anthropic":
            api_key = reveal(self.credentials.anthropic_api_key)
            if not api_key:
                raise ConfigurationError(
                    f"No Anthropic API key found for model '{config.id}'. "
                    "Set ANTHROPIC_API_KEY or CLAUDE_CODE_OAUTH_TOKEN."
                )
            return AnthropicBackend(api_key=api_key)
        if provider == "openai":
            api_key = reveal(self.credentials.openai_api_key)
            if not api_key:
                raise ConfigurationError(
                    f"No OpenAI API key found for model '{config.id}'. Set OPENAI_API_KEY."
                )
            return OpenAICompatibleBackend(api_key=api_key, base_url=config.api_base)
        if provider == "custom":
            if not config.api_base:
                raise ConfigurationError(f"Custom model '{config.id}' has no api_base configured")
            api_key = (
                reveal(self.credentials.custom_api_key)
                or reveal(self.credentials.openai_api_key)
                or _PLACEHOLDER_API_KEY
            )
            return OpenAICompatibleBackend(api_key=api_key, base_url=config.api_base)
        # ollama
        return OpenAICompatibleBackend(
            api_key=_PLACEHOLDER_API_KEY,
            base_url=config.api_base or DEFAULT_OLLAMA_BASE,
        )

    def backend_for(self, config: ModelConfig) -> StreamingBackend:
        """Resolve (and cache) the backend serving a model.

        Raises:
            UnsupportedProviderError: If the provider tag has no backend.
            ConfigurationError: If credentials or endpoint are missing.
        """
        provider = self._normalize_provider(config.provider)
        if provider in self._overrides:
            return self._overrides[provider]
        key = (provider, config.api_base)
        with self._lock:
            backend = self._backends.get(key)
            if backend is None:
                backend = self._build_backend(provider, config)
                self._backends[key] = backend
            return backend

    def generate(
        self,
        prompt: str,
        model: ModelConfig | str,
        token: CancellationToken | None = None,
    ) -> GenerationStream:
        """Start a streamed generation.

        The first fragment is pulled before returning, so a provider that
        fails before producing output raises here and nothing is emitted.

        Args:
            prompt: Full prompt text.
            model: ModelConfig or a registered model id.
            token: Cancellation token checked between fragments.

        Returns:
            GenerationStream; iterate it to receive fragments in order.

        Raises:
            ConfigurationError: Unknown model id, empty prompt or missing setup.
            UnsupportedProviderError: Provider tag has no backend.
            RateLimitExceeded: The rate-limit gate did not clear in time.
            ProviderError: The provider failed before any output.
        """
        config = self.registry.get(model) if isinstance(model, str) else model
        if not prompt or not prompt.strip():
            raise ConfigurationError("Cannot generate from an empty prompt")
        backend = self.backend_for(config)
        gate = self.rate_limiter.acquire(config.id)
        logger.debug("Rate gate for %s: %s (remaining=%d)", config.id, gate.reason, gate.remaining)

        token = token or CancellationToken()
        input_tokens = estimate_tokens(prompt)

        def _record(text: str, elapsed_ms: float) -> None:
            output_tokens = estimate_tokens(text)
            usage = GenerationUsage(
                model_id=config.id,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_usd=compute_cost(config, input_tokens, output_tokens),
                latency_ms=int(elapsed_ms),
            )
            self.cost_tracker.record(usage)
            stream.usage = usage
            logger.info(
                "Generation with %s complete: in=%d out=%d cost=$%.6f",
                config.id, input_tokens, output_tokens, usage.cost_usd,
            )

        try:
            fragments = iter(backend.stream(prompt, config, token))
        except ProviderLayerError:
            raise
        except Exception as exc:
            raise ProviderError(f"Failed to start generation with '{config.id}': {exc}") from exc

        stream = GenerationStream(fragments, model_id=config.id, token=token, on_complete=_record)
        stream.prime()
        return stream
