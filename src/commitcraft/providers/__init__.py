"""Model registry, rate limiting, cost accounting and streaming generation."""

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
    RateLimitExceeded,
    UnsupportedProviderError,
)
from commitcraft.providers.rate_limiter import RateLimitResult, SlidingWindowRateLimiter
from commitcraft.providers.registry import BUILTIN_MODELS, DEFAULT_MODEL_ID, ModelRegistry
from commitcraft.providers.router import ModelRouter
from commitcraft.providers.stream import CancellationToken, GenerationStream

__all__ = [
    "AnthropicBackend",
    "BUILTIN_MODELS",
    "CancellationToken",
    "ConfigurationError",
    "CostTracker",
    "DEFAULT_MODEL_ID",
    "GenerationStream",
    "ModelRegistry",
    "ModelRouter",
    "OpenAICompatibleBackend",
    "ProviderCredentials",
    "ProviderError",
    "ProviderLayerError",
    "RateLimitExceeded",
    "RateLimitResult",
    "SlidingWindowRateLimiter",
    "StreamingBackend",
    "UnsupportedProviderError",
    "compute_cost",
    "estimate_tokens",
]
